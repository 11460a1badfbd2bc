"""Demo: rotation lock over an in-memory host

Runs a short selection script against MemoryPanelHost and prints the panel
table after every step.
"""

import argparse

from rich.console import Console
from rich.table import Table
from rich.text import Text

from rotalock.adapters.memory import MemoryPanelHost
from rotalock.rotation.types import RotationMode, RotationSettings
from rotalock.runtime import RuntimeComponents, bootstrap
from rotalock.telemetry import setup_logging

DEMO_OBJECTS = ["Main Camera", "Directional Light", "Player", "Enemy", "Terrain"]


def render_panels(components: RuntimeComponents, title: str = "") -> Table:
    """Build the panel table for the current state"""
    scheduler = components.scheduler
    host = components.host
    snapshot = scheduler.snapshot()

    state = "on" if snapshot.enabled else "off"
    if snapshot.paused:
        state += " (paused)"
    table = Table(title=title or f"rotation {state} | mode={snapshot.mode.value}")
    table.add_column("#", justify="right")
    table.add_column("Panel")
    table.add_column("Lock")
    table.add_column("Shows")
    table.add_column("Role")

    for panel in host.list_panels():
        shown = host.get_displayed_object(panel)
        if scheduler.is_excluded(panel):
            role = Text("excluded", style="yellow")
        elif scheduler.is_next_target(panel):
            role = Text("next", style="bold green")
        else:
            label = scheduler.role_label(panel)
            role = Text(label or str(scheduler.rotation_index(panel)), style="dim")

        table.add_row(
            str(scheduler.window_index(panel)),
            getattr(panel, "title", host.panel_key(panel)),
            "locked" if host.is_locked(panel) else "-",
            getattr(shown, "name", "") if shown is not None else "",
            role,
        )
    return table


def run_demo(
    console: Console,
    mode: RotationMode = RotationMode.CYCLE,
    legacy: bool = False,
    panels: int = 3,
) -> RuntimeComponents:
    """Drive one scripted session

    Returns:
        The (disposed) components, for inspection
    """
    host = MemoryPanelHost(direct_update_supported=not legacy)
    for i in range(panels):
        host.open_panel(title=f"Inspector {i + 1}")

    components = bootstrap(host=host, settings=RotationSettings(mode=mode, auto_focus_on_update=False))
    scheduler = components.scheduler
    try:
        scheduler.enable()
        console.print(render_panels(components, "enabled"))

        for name in DEMO_OBJECTS:
            host.select(host.create_object(name))
            # host tick: runs fallback re-locks
            components.idle.drain()
            console.print(render_panels(components, f"selected {name}"))

        history = components.history
        history.go_back()
        components.idle.drain()
        console.print(render_panels(components, "history back"))
    finally:
        components.dispose()
    return components


def main():
    """Run the demo"""
    parser = argparse.ArgumentParser(description="rotalock demo")
    parser.add_argument("--mode", default="cycle", choices=[m.value for m in RotationMode])
    parser.add_argument("--legacy", action="store_true", help="host without direct update")
    parser.add_argument("--panels", type=int, default=3)
    args = parser.parse_args()

    setup_logging("WARNING")
    run_demo(Console(), RotationMode.parse(args.mode), args.legacy, args.panels)


if __name__ == "__main__":
    main()

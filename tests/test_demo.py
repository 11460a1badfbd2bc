"""Demo tests"""

import io

import pytest
from rich.console import Console

from rotalock.demo import DEMO_OBJECTS, render_panels, run_demo
from rotalock.rotation.types import RotationMode


def make_console():
    return Console(file=io.StringIO(), width=120)


class TestDemo:
    @pytest.mark.parametrize("mode", list(RotationMode))
    @pytest.mark.parametrize("legacy", [False, True])
    def test_run_demo(self, mode, legacy):
        console = make_console()

        components = run_demo(console, mode=mode, legacy=legacy)

        output = console.file.getvalue()
        assert f"selected {DEMO_OBJECTS[-1]}" in output
        assert "history back" in output
        assert components.is_disposed

    def test_cycle_demo_fills_every_panel(self):
        components = run_demo(make_console(), mode=RotationMode.CYCLE)

        shown = [p.displayed for p in components.host.list_panels()]
        assert all(obj is not None for obj in shown)

    def test_render_panels_rows(self):
        components = run_demo(make_console(), panels=4)
        table = render_panels(components)
        assert table.row_count == 4

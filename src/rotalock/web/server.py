"""Web server - REST control surface plus WebSocket event relay"""

import asyncio
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from pydantic import BaseModel

from ..rotation.types import RotationMode
from ..telemetry import get_logger, metrics
from .handlers import MessageHandler, serialize_event

if TYPE_CHECKING:
    from ..adapters.base import PanelRef
    from ..runtime import RuntimeComponents

logger = get_logger(__name__)


# === Request / response models ===


class EnabledRequest(BaseModel):
    enabled: bool


class PausedRequest(BaseModel):
    paused: bool


class ModeRequest(BaseModel):
    mode: str  # "cycle" | "history"


class NextTargetRequest(BaseModel):
    """Either a panel key or an index into the host enumeration"""

    panel: str | None = None
    index: int | None = None


class ReorderRequest(BaseModel):
    from_index: int
    to_index: int


class ExcludedRequest(BaseModel):
    excluded: bool


class ActionResponse(BaseModel):
    success: bool
    message: str = ""


class PanelInfo(BaseModel):
    key: str
    title: str
    locked: bool
    window_index: int
    rotation_index: int
    is_next: bool
    role: str | None = None


class RotationState(BaseModel):
    enabled: bool
    paused: bool
    updating: bool
    mode: str
    next_target: str | None
    rotation: list[PanelInfo]
    excluded: list[PanelInfo]
    unmanaged: list[PanelInfo]
    history_depth: int


class WebServer:
    """FastAPI app bound to one RuntimeComponents"""

    def __init__(self, components: "RuntimeComponents"):
        self.app = FastAPI(title="rotalock")
        self.components = components
        self.scheduler = components.scheduler
        self.host = components.host
        self.clients: list[WebSocket] = []
        # pending relay sends, held until done
        self._relay_tasks: set[asyncio.Task] = set()

        self._handler = MessageHandler(scheduler=self.scheduler)

        self._setup_routes()
        components.bus.subscribe_all(self._on_bus_event)

    # === State ===

    def panel_info(self, panel: "PanelRef") -> PanelInfo:
        key = self.host.panel_key(panel)
        return PanelInfo(
            key=key,
            title=str(getattr(panel, "title", key)),
            locked=self.host.is_locked(panel),
            window_index=self.scheduler.window_index(panel),
            rotation_index=self.scheduler.rotation_index(panel),
            is_next=self.scheduler.is_next_target(panel),
            role=self.scheduler.role_label(panel),
        )

    def get_state(self) -> RotationState:
        snapshot = self.scheduler.snapshot()
        next_target = snapshot.next_target
        return RotationState(
            enabled=snapshot.enabled,
            paused=snapshot.paused,
            updating=snapshot.updating,
            mode=snapshot.mode.value,
            next_target=self.host.panel_key(next_target) if next_target is not None else None,
            rotation=[self.panel_info(p) for p in snapshot.rotation],
            excluded=[self.panel_info(p) for p in snapshot.excluded],
            unmanaged=[self.panel_info(p) for p in snapshot.unmanaged],
            history_depth=snapshot.history_depth,
        )

    def _require_panel(self, key: str) -> "PanelRef":
        panel = self.host.find_panel(key)
        if panel is None:
            raise HTTPException(status_code=404, detail=f"Panel not found: {key}")
        return panel

    # === Routes ===

    def _setup_routes(self):
        app = self.app

        @app.get("/api/rotation", response_model=RotationState)
        async def get_rotation():
            return self.get_state()

        @app.post("/api/rotation/enabled", response_model=ActionResponse)
        async def set_enabled(request: EnabledRequest):
            changed = self.scheduler.set_enabled(request.enabled)
            return ActionResponse(success=True, message="changed" if changed else "unchanged")

        @app.post("/api/rotation/paused", response_model=ActionResponse)
        async def set_paused(request: PausedRequest):
            changed = self.scheduler.set_paused(request.paused)
            return ActionResponse(success=True, message="changed" if changed else "unchanged")

        @app.post("/api/rotation/mode", response_model=ActionResponse)
        async def set_mode(request: ModeRequest):
            try:
                mode = RotationMode.parse(request.mode)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e)) from None
            self.scheduler.mode = mode
            return ActionResponse(success=True, message=mode.value)

        @app.post("/api/rotation/rotate", response_model=ActionResponse)
        async def rotate():
            return ActionResponse(success=self.scheduler.rotate_to_next())

        @app.post("/api/rotation/next", response_model=ActionResponse)
        async def set_next(request: NextTargetRequest):
            if request.panel is not None:
                panel = self._require_panel(request.panel)
                return ActionResponse(success=self.scheduler.set_next_target(panel))
            if request.index is not None:
                return ActionResponse(success=self.scheduler.set_next_target_index(request.index))
            raise HTTPException(status_code=400, detail="panel or index required")

        @app.post("/api/rotation/reorder", response_model=ActionResponse)
        async def reorder(request: ReorderRequest):
            return ActionResponse(
                success=self.scheduler.reorder(request.from_index, request.to_index)
            )

        @app.post("/api/rotation/sync")
        async def sync():
            report = self.scheduler.synchronize()
            return {
                "removed": report.removed,
                "added": report.added,
                "relocked": report.relocked,
                "timed_out": report.timed_out,
            }

        @app.post("/api/rotation/panels/{key}/excluded", response_model=ActionResponse)
        async def set_excluded(key: str, request: ExcludedRequest):
            panel = self._require_panel(key)
            changed = self.scheduler.set_excluded(panel, request.excluded)
            return ActionResponse(success=changed)

        @app.get("/api/metrics")
        async def get_metrics():
            return {"counters": metrics.get_all_counters(), "gauges": metrics.get_all_gauges()}

        @app.websocket("/ws")
        async def websocket_endpoint(websocket: WebSocket):
            await websocket.accept()
            self.clients.append(websocket)
            try:
                await websocket.send_json({"type": "state", **self.get_state().model_dump()})
                while True:
                    data = await websocket.receive_text()
                    await self._handler.handle(websocket, data)
            except WebSocketDisconnect:
                pass
            finally:
                if websocket in self.clients:
                    self.clients.remove(websocket)

    # === Broadcast ===

    def _on_bus_event(self, event: Any) -> None:
        """Relay a bus event to every WebSocket client"""
        if not self.clients:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # published outside the server loop (e.g. from a worker thread)
            return
        task = loop.create_task(self.broadcast(serialize_event(event, self.host)))
        self._relay_tasks.add(task)
        task.add_done_callback(self._relay_tasks.discard)

    async def broadcast(self, data: dict):
        """Send a message to every client"""
        for client in list(self.clients):
            try:
                await client.send_json(data)
            except Exception as e:
                logger.debug(f"[Web] Dropping client: {e}")
                if client in self.clients:
                    self.clients.remove(client)

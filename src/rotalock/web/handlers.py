"""WebSocket message handling and event serialization"""

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from fastapi import WebSocket

from ..bus import event_name
from ..telemetry import get_logger

if TYPE_CHECKING:
    from ..adapters.base import PanelCapability
    from ..rotation.scheduler import RotationScheduler

logger = get_logger(__name__)


def describe_object(obj: Any) -> str | None:
    """Display name of a selection object"""
    if obj is None:
        return None
    return str(getattr(obj, "name", obj))


def serialize_event(event: Any, host: "PanelCapability") -> dict:
    """Convert a bus event to a WebSocket message"""
    message: dict[str, Any] = {"type": "event", "event": event_name(event)}
    for key, value in vars(event).items():
        if key == "panel":
            message["panel"] = host.panel_key(value) if value is not None else None
        elif key == "obj":
            message["object"] = describe_object(value)
        else:
            message[key] = value
    return message


@dataclass
class MessageHandler:
    """WebSocket message handler

    Accepted messages (JSON):
        {"action": "rotate"}
        {"action": "sync"}
        {"action": "next", "panel": "<key>"}
    """

    scheduler: "RotationScheduler"

    async def handle(self, websocket: WebSocket, data: str) -> None:
        """Handle one text frame"""
        try:
            msg = json.loads(data)
        except json.JSONDecodeError:
            await websocket.send_json({"type": "error", "message": "invalid json"})
            return
        if not isinstance(msg, dict):
            await websocket.send_json({"type": "error", "message": "expected an object"})
            return

        action = msg.get("action")
        if action == "rotate":
            success = self.scheduler.rotate_to_next()
        elif action == "sync":
            self.scheduler.synchronize()
            success = True
        elif action == "next":
            panel = self.scheduler.host.find_panel(str(msg.get("panel", "")))
            success = self.scheduler.set_next_target(panel)
        else:
            logger.warning(f"[Web] Unknown action: {action}")
            await websocket.send_json({"type": "error", "message": f"unknown action: {action}"})
            return

        await websocket.send_json({"type": f"{action}_result", "success": success})

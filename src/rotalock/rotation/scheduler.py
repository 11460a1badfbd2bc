"""RotationScheduler - rotation lock engine

Keeps every managed panel locked and fans each new selection out to the
panels in a controlled order instead of letting the host overwrite all of
them at once.

States:
- Disabled: host behaves normally, queue empty
- Enabled (+ Paused): panels locked; selections dispatched unless paused
- Updating: transient re-entrancy guard around one dispatch

Policies:
- CYCLE: queue head receives the selection, then moves to the tail
- HISTORY: position i shows the i-th most recent selection

Strategies:
- direct update: host swaps the object while the panel stays locked
- fallback: unlock + repaint, re-lock on the next idle tick
"""

from typing import TYPE_CHECKING, Any

from .. import config
from ..bus import EngineEnabledChanged, NotificationBus, PauseChanged, UpdateCompleted
from ..core.clock import Clock, MonotonicClock
from ..core.idle import IdleQueue
from ..telemetry import format_panel_log, get_logger, metrics
from .exclusion import ExclusionSet
from .types import (
    RotationMode,
    RotationSettings,
    RotationSnapshot,
    SelectionPredicate,
    SyncReport,
)

if TYPE_CHECKING:
    from ..adapters.base import PanelCapability, PanelRef
    from ..persistence import Persistence

logger = get_logger(__name__)

_MISSING = object()


class RotationScheduler:
    """Rotation lock engine

    Usage:
        host = MemoryPanelHost()
        scheduler = RotationScheduler(host, bus, selection_source=host)
        scheduler.enable()
        host.select(obj)        # dispatched to the queue head
        timer.tick()            # drains fallback continuations
        scheduler.dispose()

    Attributes:
        host: panel capability
        bus: notification bus
    """

    def __init__(
        self,
        host: "PanelCapability",
        bus: NotificationBus | None = None,
        persistence: "Persistence | None" = None,
        settings: RotationSettings | None = None,
        idle: IdleQueue | None = None,
        clock: Clock | None = None,
        selection_source: Any = None,
        update_timeout: float | None = None,
    ):
        """
        Args:
            host: panel capability
            bus: bus for state notifications, a private one when omitted
            persistence: store for the enabled flag
            settings: mode / auto focus / selection filter
            idle: queue receiving fallback continuations
            clock: time source for the update timeout
            selection_source: object with subscribe()/unsubscribe() delivering
                selection changes; subscribed here, unsubscribed on dispose()
            update_timeout: seconds before a stuck update is reset
        """
        self.host = host
        self.bus = bus or NotificationBus()
        self._persistence = persistence
        self._settings = settings or RotationSettings()
        self._idle = idle or IdleQueue()
        self._clock = clock or MonotonicClock()
        self._update_timeout = (
            config.UPDATE_TIMEOUT_SECONDS if update_timeout is None else update_timeout
        )
        self._exclusions = ExclusionSet(host)

        # rotation order, index 0 is the next target
        self._queue: list["PanelRef"] = []
        # most-recent-first selections (HISTORY)
        self._history: list[Any] = []

        self._enabled = False
        self._paused = False
        self._updating = False
        self._update_started_at = 0.0
        self._update_token = 0
        self._last_selection: Any = None
        self._disposed = False

        self._selection_source = selection_source
        if selection_source is not None:
            selection_source.subscribe(self.on_selection_changed)

        self._load_settings()

    # === Lifecycle ===

    def dispose(self) -> None:
        """Unsubscribe and drop all bookkeeping

        Pending fallback continuations become no-ops.
        """
        if self._disposed:
            return
        self._disposed = True

        if self._selection_source is not None:
            self._selection_source.unsubscribe(self.on_selection_changed)
        self._queue.clear()
        self._exclusions.clear()
        self._history.clear()
        self._updating = False
        logger.debug("[Rotation] Disposed")

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    # === Enable / pause ===

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    def enable(self) -> None:
        self.set_enabled(True)

    def disable(self) -> None:
        self.set_enabled(False)

    def set_enabled(self, enabled: bool) -> bool:
        """Switch the engine on/off

        Args:
            enabled: target state

        Returns:
            Whether the state changed
        """
        if self._disposed or self._enabled == enabled:
            return False

        self._enabled = enabled
        self._paused = False
        # continuations from the previous session become no-ops
        self._update_token += 1
        self._updating = False
        self._save_settings()

        if enabled:
            self._initialize_rotation()
        else:
            self._release_panels()

        logger.info(f"[Rotation] {'Enabled' if enabled else 'Disabled'} ({len(self._queue)} panels)")
        self.bus.publish(EngineEnabledChanged(enabled=enabled))
        return True

    @property
    def is_paused(self) -> bool:
        return self._paused

    def set_paused(self, paused: bool) -> bool:
        """Pause/resume dispatching; panels stay locked while paused

        Returns:
            Whether the state changed
        """
        if self._disposed or self._paused == paused:
            return False
        self._paused = paused
        logger.info(f"[Rotation] {'Paused' if paused else 'Resumed'}")
        self.bus.publish(PauseChanged(paused=paused))
        return True

    def _initialize_rotation(self) -> None:
        """Snapshot and lock live, non-excluded panels"""
        self._queue.clear()
        self._history.clear()
        try:
            panels = self.host.list_panels()
            self._last_selection = self.host.get_selection()
        except Exception as e:
            logger.error(f"[Rotation] Reading host state failed: {e}")
            metrics.inc("rotation.host_errors", {"op": "initialize"})
            panels = []

        for panel in panels:
            # excluded panels stay frozen, but out of the queue
            self._set_locked(panel, True)
            if not self._exclusions.is_excluded(panel):
                self._queue.append(panel)

        metrics.gauge("rotation.queue_depth", len(self._queue))

    def _release_panels(self) -> None:
        """Unlock everything the engine locked and forget the queue"""
        for panel in self._queue + self._exclusions.panels():
            if self._is_live(panel):
                self._set_locked(panel, False)
        self._queue.clear()
        self._history.clear()
        metrics.gauge("rotation.queue_depth", 0)

    # === Settings ===

    @property
    def settings(self) -> RotationSettings:
        return self._settings

    @property
    def mode(self) -> RotationMode:
        return self._settings.mode

    @mode.setter
    def mode(self, value: "RotationMode | str") -> None:
        mode = RotationMode.parse(value)
        if mode != self._settings.mode:
            self._settings.mode = mode
            self._history.clear()
            logger.info(f"[Rotation] Mode -> {mode.value}")

    @property
    def auto_focus_on_update(self) -> bool:
        return self._settings.auto_focus_on_update

    @auto_focus_on_update.setter
    def auto_focus_on_update(self, value: bool) -> None:
        self._settings.auto_focus_on_update = value

    @property
    def selection_filter(self) -> SelectionPredicate:
        return self._settings.selection_filter

    @selection_filter.setter
    def selection_filter(self, predicate: SelectionPredicate) -> None:
        self._settings.selection_filter = predicate

    def apply_settings(self, settings: RotationSettings) -> None:
        """Replace mode, auto focus and filter in one go"""
        self.mode = settings.mode
        self._settings.auto_focus_on_update = settings.auto_focus_on_update
        self._settings.selection_filter = settings.selection_filter

    def _load_settings(self) -> None:
        if self._persistence is None:
            return
        try:
            data = self._persistence.load(config.ENABLED_SETTINGS_KEY, None)
        except Exception as e:
            logger.error(f"[Rotation] Failed to load settings: {e}")
            return
        if isinstance(data, dict) and data.get("is_enabled"):
            self._enabled = True
            self._initialize_rotation()
            logger.info(f"[Rotation] Restored enabled state ({len(self._queue)} panels)")

    def _save_settings(self) -> None:
        if self._persistence is None:
            return
        try:
            self._persistence.save(config.ENABLED_SETTINGS_KEY, {"is_enabled": self._enabled})
        except Exception as e:
            logger.error(f"[Rotation] Failed to save settings: {e}")

    # === Selection dispatch ===

    def on_selection_changed(self, selection: Any = _MISSING) -> bool:
        """Handle one selection-change notification

        Args:
            selection: new selection, read from the host when omitted

        Returns:
            Whether an update was dispatched
        """
        if self._disposed or not self._enabled or self._paused or self._updating:
            return False

        if selection is _MISSING:
            try:
                selection = self.host.get_selection()
            except Exception as e:
                logger.error(f"[Rotation] Reading selection failed: {e}")
                metrics.inc("rotation.host_errors", {"op": "get_selection"})
                return False
        if selection is None:
            return False

        if self._is_filtered(selection):
            return False

        if selection is self._last_selection:
            return False
        self._last_selection = selection

        # runs inside the host's selection event, nothing may escape
        try:
            self.synchronize()
            if not self._queue:
                return False

            metrics.inc("rotation.dispatch", {"mode": self._settings.mode.value})
            if self._settings.mode == RotationMode.HISTORY:
                self._perform_history_update(selection)
            else:
                self._perform_cycle_update(selection)
        except Exception as e:
            logger.error(f"[Rotation] Selection dispatch failed: {e}")
            metrics.inc("rotation.update_failed", {"strategy": "dispatch"})
            return False
        return True

    def _is_filtered(self, selection: Any) -> bool:
        predicate = self._settings.selection_filter
        if predicate is None:
            return False
        try:
            return bool(predicate(selection))
        except Exception as e:
            logger.error(f"[Rotation] Selection filter failed: {e}")
            return False

    def _begin_update(self) -> int:
        self._updating = True
        self._update_started_at = self._clock.now()
        self._update_token += 1
        return self._update_token

    def _end_update(self, token: int) -> None:
        # a continuation from a timed-out dispatch must not clear a newer one
        if token == self._update_token:
            self._updating = False

    def _set_locked(self, panel: "PanelRef", locked: bool) -> bool:
        """Host lock call that logs instead of raising"""
        try:
            self.host.set_locked(panel, locked)
            return True
        except Exception as e:
            logger.error(f"[Rotation] {'Lock' if locked else 'Unlock'} of {panel!r} failed: {e}")
            metrics.inc("rotation.host_errors", {"op": "set_locked"})
            return False

    def _is_live(self, panel: "PanelRef") -> bool:
        """Host liveness probe; a failing probe counts as closed"""
        try:
            return bool(self.host.is_live(panel))
        except Exception as e:
            logger.error(f"[Rotation] Liveness check of {panel!r} failed: {e}")
            metrics.inc("rotation.host_errors", {"op": "is_live"})
            return False

    def _try_direct_update(self, panel: "PanelRef", obj: Any) -> bool:
        try:
            ok = bool(self.host.try_direct_update(panel, obj))
        except Exception as e:
            logger.warning(format_panel_log("Rotation", self.host.panel_key(panel), f"direct update raised: {e}"))
            ok = False
        if ok:
            metrics.inc("rotation.direct_update")
        else:
            metrics.inc("rotation.update_failed", {"strategy": "direct"})
        return ok

    def _perform_cycle_update(self, selection: Any) -> None:
        """Update the queue head, direct first, fallback second"""
        if not self._queue:
            return

        token = self._begin_update()
        try:
            target = self._queue[0]

            if self.host.is_direct_update_supported():
                if self._try_direct_update(target, selection):
                    self._requeue(target)
                    self._end_update(token)
                    self.bus.publish(UpdateCompleted(panel=target, obj=selection))
                    self._focus_if_allowed(target)
                    return
                logger.warning("[Rotation] Direct update failed, falling back to unlock/relock")

            metrics.inc("rotation.fallback")
            self.host.set_locked(target, False)
            self.host.repaint(target)
            self._idle.call_idle(lambda: self._complete_fallback(token, target, selection))

        except Exception as e:
            logger.error(f"[Rotation] Rotation update failed: {e}")
            metrics.inc("rotation.update_failed", {"strategy": "cycle"})
            self._end_update(token)

    def _complete_fallback(self, token: int, target: "PanelRef", selection: Any) -> None:
        """Idle continuation of the unlock/relock strategy"""
        # a disable/enable or a newer dispatch started since this was queued
        if self._disposed or token != self._update_token:
            return

        try:
            if not self.host.is_live(target):
                # closed mid-flight; the next sync drops it from the queue
                logger.debug(format_panel_log("Rotation", self.host.panel_key(target), "closed before re-lock"))
                return

            self.host.set_locked(target, True)
            if target in self._queue:
                self._requeue(target)

            self._end_update(token)
            self.bus.publish(UpdateCompleted(panel=target, obj=selection))
            self._focus_if_allowed(target)

        except Exception as e:
            logger.error(f"[Rotation] Fallback completion failed: {e}")
            metrics.inc("rotation.update_failed", {"strategy": "fallback"})
        finally:
            self._end_update(token)

    def _perform_history_update(self, selection: Any) -> None:
        """Cascade the history buffer over the queue positions"""
        if not self._queue:
            return

        self._history.insert(0, selection)
        del self._history[len(self._queue) + config.HISTORY_SLACK:]

        if not self.host.is_direct_update_supported():
            logger.warning("[Rotation] Direct update not available, falling back to Cycle mode")
            self._history.clear()
            self._perform_cycle_update(selection)
            return

        token = self._begin_update()
        try:
            for index, panel in enumerate(list(self._queue)):
                if index >= len(self._history):
                    break
                obj = self._history[index]
                if not self.host.is_object_valid(obj):
                    continue
                if not self._try_direct_update(panel, obj):
                    logger.debug(format_panel_log("Rotation", self.host.panel_key(panel), f"history slot {index} not updated"))

            head = self._queue[0]
            self._end_update(token)
            self.bus.publish(UpdateCompleted(panel=head, obj=selection))
            self._focus_if_allowed(head)

        except Exception as e:
            logger.error(f"[Rotation] History update failed: {e}")
            metrics.inc("rotation.update_failed", {"strategy": "history"})
        finally:
            self._end_update(token)

    def _requeue(self, panel: "PanelRef") -> None:
        self._queue.remove(panel)
        self._queue.append(panel)

    def _focus_if_allowed(self, panel: "PanelRef") -> None:
        if not self._settings.auto_focus_on_update:
            return
        try:
            if self.host.is_focus_on_non_rotatable():
                return
            self.host.focus(panel)
        except Exception as e:
            logger.warning(f"[Rotation] Focus failed: {e}")

    # === Synchronization ===

    def synchronize(self) -> SyncReport:
        """Reconcile the queue with the live panel set

        Also runs the stuck-update guard. Safe to call from a periodic tick.

        Returns:
            SyncReport describing what changed
        """
        report = SyncReport()
        if self._disposed:
            return report

        try:
            report.purged_exclusions = self._exclusions.purge_dead()
        except Exception as e:
            logger.error(f"[Rotation] Purging exclusions failed: {e}")
            metrics.inc("rotation.host_errors", {"op": "is_live"})

        if self._updating and self._clock.now() - self._update_started_at > self._update_timeout:
            logger.warning("[Rotation] Rotation update timed out, resetting state")
            metrics.inc("rotation.timeout_reset")
            self._updating = False
            report.timed_out = True

        if not self._enabled:
            return report

        try:
            live = self.host.list_panels()
        except Exception as e:
            logger.error(f"[Rotation] Listing panels failed: {e}")
            return report

        live_set = set(live)
        before = len(self._queue)
        self._queue = [p for p in self._queue if p in live_set and self._is_live(p)]
        report.removed = before - len(self._queue)

        for panel in live:
            if self._exclusions.is_excluded(panel) or panel in self._queue:
                continue
            self._queue.append(panel)
            self._set_locked(panel, True)
            report.added += 1

        if not self._updating:
            for panel in live:
                if self._exclusions.is_excluded(panel):
                    continue
                try:
                    locked = self.host.is_locked(panel)
                except Exception as e:
                    logger.error(f"[Rotation] Lock query of {panel!r} failed: {e}")
                    metrics.inc("rotation.host_errors", {"op": "is_locked"})
                    continue
                if not locked and self._set_locked(panel, True):
                    report.relocked += 1

        if report.changed:
            logger.debug(
                f"[Rotation] Sync: -{report.removed} +{report.added} relocked={report.relocked}"
            )
        metrics.gauge("rotation.queue_depth", len(self._queue))
        return report

    # === Manual controls ===

    def rotate_to_next(self) -> bool:
        """Advance the turn without updating any panel

        Returns:
            Whether the queue rotated
        """
        if not self._enabled or self._disposed:
            return False
        self.synchronize()
        if not self._queue:
            return False
        self._requeue(self._queue[0])
        return True

    def set_next_target(self, panel: "PanelRef | None") -> bool:
        """Make ``panel`` the next target

        Returns:
            Whether the panel is now at the head
        """
        if not self._enabled or self._disposed or panel is None:
            return False
        self.synchronize()
        if panel not in self._queue:
            return False
        self._queue.remove(panel)
        self._queue.insert(0, panel)
        return True

    def set_next_target_index(self, index: int) -> bool:
        """Like set_next_target, addressed by host enumeration index"""
        if not self._enabled or self._disposed:
            return False
        panels = self.host.list_panels()
        if index < 0 or index >= len(panels):
            return False
        return self.set_next_target(panels[index])

    def reorder(self, from_index: int, to_index: int) -> bool:
        """Move a queue entry between two in-range positions

        Returns:
            Whether the queue changed
        """
        size = len(self._queue)
        if not (0 <= from_index < size) or not (0 <= to_index < size):
            return False
        if from_index == to_index:
            return False
        panel = self._queue.pop(from_index)
        self._queue.insert(to_index, panel)
        return True

    def add_managed_panel(self, panel: "PanelRef | None") -> bool:
        """Take a freshly created panel under management

        The exclusion flag is cleared first so the panel is never in both
        the queue and the exclusion set.

        Returns:
            Whether the panel is managed afterwards
        """
        if panel is None or self._disposed or not self.host.is_live(panel):
            return False

        was_excluded = self._exclusions.set_excluded(panel, False)
        if not self._enabled:
            # only the exclusion held this lock
            if was_excluded:
                self._set_locked(panel, False)
            return False

        self._set_locked(panel, True)
        if panel not in self._queue:
            self._queue.append(panel)
        return True

    # === Exclusion ===

    def set_excluded(self, panel: "PanelRef | None", excluded: bool) -> bool:
        """Exclude a panel from rotation or include it back

        Returns:
            Whether the exclusion set changed
        """
        if panel is None or self._disposed:
            return False
        if excluded and not self.host.is_live(panel):
            return False

        def include_back() -> None:
            if self._enabled:
                self.synchronize()
            elif self.host.is_live(panel):
                self.host.set_locked(panel, False)

        return self._exclusions.set_excluded(panel, excluded, self._queue, include_back)

    def is_excluded(self, panel: "PanelRef | None") -> bool:
        return self._exclusions.is_excluded(panel)

    def excluded_panels(self) -> list["PanelRef"]:
        return [p for p in self._exclusions.panels() if self.host.is_live(p)]

    # === Queries ===

    @property
    def is_updating(self) -> bool:
        return self._updating

    @property
    def last_selection(self) -> Any:
        return self._last_selection

    def rotation_order(self) -> list["PanelRef"]:
        return list(self._queue)

    def history_buffer(self) -> list[Any]:
        return list(self._history)

    def is_next_target(self, panel: "PanelRef") -> bool:
        return bool(self._queue) and self._queue[0] is panel

    def rotation_index(self, panel: "PanelRef") -> int:
        """Queue position, -1 when not in rotation"""
        try:
            return self._queue.index(panel)
        except ValueError:
            return -1

    def window_index(self, panel: "PanelRef") -> int:
        """1-based position in host enumeration, -1 when not live"""
        for index, candidate in enumerate(self.host.list_panels()):
            if candidate is panel:
                return index + 1
        return -1

    def role_label(self, panel: "PanelRef") -> str | None:
        """History role of a panel: "latest", "previous:N" or None"""
        if self._settings.mode != RotationMode.HISTORY:
            return None
        index = self.rotation_index(panel)
        if index < 0:
            return None
        if index == 0:
            return "latest"
        return f"previous:{index}"

    def classify_panels(self) -> tuple[list["PanelRef"], list["PanelRef"], list["PanelRef"]]:
        """Split live panels into (rotation, excluded, unmanaged)"""
        rotation = list(self._queue)
        excluded: list["PanelRef"] = []
        unmanaged: list["PanelRef"] = []
        for panel in self.host.list_panels():
            if self._exclusions.is_excluded(panel):
                excluded.append(panel)
            elif panel not in self._queue:
                unmanaged.append(panel)
        return rotation, excluded, unmanaged

    def snapshot(self) -> RotationSnapshot:
        rotation, excluded, unmanaged = self.classify_panels()
        return RotationSnapshot(
            enabled=self._enabled,
            paused=self._paused,
            updating=self._updating,
            mode=self._settings.mode,
            rotation=tuple(rotation),
            excluded=tuple(excluded),
            unmanaged=tuple(unmanaged),
            history_depth=len(self._history),
        )

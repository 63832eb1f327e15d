"""Pipeline orchestrator: route, compose and hand each message to the panel."""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping

from cactuspi_display import DeviceError, DisplaySession, DisplaySessionManager, Frame
from cactuspi_renderer import AssetStore, FrameCompositor, OverlayAsset, get_layout, save_frame

from .errors import MESSAGE_ERRORS
from .logging_setup import get_logger
from .router import MessageRouter, RenderRequest


@dataclass
class PipelineStatus:
    handled: int = 0
    dropped: int = 0
    last_kind: str | None = None
    last_error: str | None = None


class PipelineOrchestrator:
    """Single owner of router, asset store, compositor and session manager.

    Messages are handled one at a time. A new message is routed and composed
    while the previous frame keeps playing; only once a frame is ready is the
    active session preempted and the device reopened.
    """

    def __init__(
        self,
        router: MessageRouter,
        assets: AssetStore,
        compositor: FrameCompositor,
        sessions: DisplaySessionManager,
        frame_path: Path | None = None,
        blocking: bool = False,
        preempt_timeout: float | None = None,
    ) -> None:
        self.router = router
        self.assets = assets
        self.compositor = compositor
        self.sessions = sessions
        self.frame_path = frame_path
        self.blocking = blocking
        self.preempt_timeout = preempt_timeout

        self._status = PipelineStatus()
        self._status_lock = threading.Lock()
        self._lock = threading.Lock()
        self._player: threading.Thread | None = None
        self._logger = get_logger("pipeline")

    @property
    def status(self) -> PipelineStatus:
        with self._status_lock:
            return replace(self._status)

    def handle_message(self, kind: Any, metadata: Mapping[str, Any] | None = None, payload: Any = None) -> bool:
        """Display one message; returns False when it was dropped."""
        with self._lock:
            with self._status_lock:
                self._status.last_kind = str(kind)
            self._logger.info("message received kind=%s", kind, extra={"event": "message_received", "kind": str(kind)})
            try:
                request = self.router.route(kind, metadata, payload)
                frame = self.render(request)
                self._persist(frame)
                self._preempt_active()
                session = self.sessions.open(rotation=request.rotation)
            except MESSAGE_ERRORS as exc:
                self._drop(kind, exc)
                return False
            except Exception as exc:
                self._logger.exception(
                    "unexpected failure handling kind=%s",
                    kind,
                    extra={"event": "message_failed", "kind": str(kind)},
                )
                self._drop(kind, exc)
                return False

            with self._status_lock:
                self._status.handled += 1
                self._status.last_error = None
            self._start_playback(session, frame, request.display_duration)
            return True

    def render(self, request: RenderRequest) -> Frame:
        layout = get_layout(request.kind.value)
        overlay = self._resolve_overlay(request, layout.icon_size)
        return self.compositor.compose(layout.text, request.lines, overlay, overlay_box=layout.overlay_box)

    def shutdown(self, timeout: float | None = None) -> None:
        with self._lock:
            self._preempt_active(timeout)

    def _resolve_overlay(self, request: RenderRequest, size: tuple[int, int] | None) -> OverlayAsset | None:
        if request.overlay_key is None:
            return None
        return self.assets.resolve(request.overlay_key, size=size)

    def _persist(self, frame: Frame) -> None:
        if self.frame_path is None:
            return
        try:
            save_frame(frame, self.frame_path)
        except OSError as exc:
            self._logger.warning("frame not saved to %s: %s", self.frame_path, exc, extra={"event": "frame_save_failed"})

    def _preempt_active(self, timeout: float | None = None) -> None:
        if self.sessions.preempt(self.preempt_timeout if timeout is None else timeout):
            self._logger.info("active session preempted", extra={"event": "session_preempted"})
        if self._player is not None:
            self._player.join(timeout)
            self._player = None

    def _drop(self, kind: Any, exc: Exception) -> None:
        error = f"{type(exc).__name__}: {exc}"
        with self._status_lock:
            self._status.dropped += 1
            self._status.last_error = error
        self._logger.warning(
            "message dropped kind=%s: %s",
            kind,
            error,
            extra={"event": "message_dropped", "kind": str(kind)},
        )

    def _record_error(self, error: str) -> None:
        with self._status_lock:
            self._status.last_error = error

    def _start_playback(self, session: DisplaySession, frame: Frame, duration: float) -> None:
        if self.blocking:
            self._play(session, frame, duration)
            return
        self._player = threading.Thread(
            target=self._play,
            args=(session, frame, duration),
            name=f"cactuspi-play-{session.session_id}",
            daemon=True,
        )
        self._player.start()

    def _play(self, session: DisplaySession, frame: Frame, duration: float) -> None:
        try:
            completed = session.play(frame, duration)
        except DeviceError as exc:
            self._record_error(f"DeviceError: {exc}")
            self._logger.error(
                "playback failed: %s",
                exc,
                extra={"event": "playback_failed", "session_id": session.session_id},
            )
            return
        except Exception as exc:
            self._record_error(f"{type(exc).__name__}: {exc}")
            self._logger.error(
                "playback crashed: %s",
                exc,
                exc_info=True,
                extra={"event": "playback_failed", "session_id": session.session_id},
            )
            return
        self._logger.info(
            "session %s %s",
            session.session_id,
            "completed" if completed else "preempted",
            extra={"event": "playback_done", "session_id": session.session_id},
        )

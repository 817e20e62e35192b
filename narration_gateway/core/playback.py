"""Playback controller: one playable resource, a consistent status, no leaked handles.

The controller never talks to a concrete audio API. It drives a
:class:`MediaEngine` and is driven back through the media clock callbacks
:meth:`PlaybackController.on_progress`, :meth:`PlaybackController.on_ended` and
:meth:`PlaybackController.on_playback_error`. All events are expected to be
delivered serially from a single thread or event loop.
"""

import logging
import math
from collections.abc import Callable
from typing import Protocol

from narration_gateway.core.classifier import ClassifiedError
from narration_gateway.core.exceptions import PlaybackStateError
from narration_gateway.core.resources import PlaybackResource, ResourceOrigin
from narration_gateway.core.status import (
    Notice,
    NoticeLevel,
    PlaybackSnapshot,
    PlaybackStatus,
    notice_for_error,
    project_status,
)

logger = logging.getLogger(__name__)

AUDIO_UNAVAILABLE_MESSAGE = "Audio not available"
PLAYBACK_FAILED_MESSAGE = "Audio playback failed. Please try again."


class MediaEngine(Protocol):
    """Anything that can decode and play one audio source at a time."""

    def load(self, source: str) -> None: ...

    def play(self) -> None: ...

    def pause(self) -> None: ...

    def seek(self, position_s: float) -> None: ...

    def unload(self) -> None: ...


class NullMediaEngine:
    """Engine that plays nothing. Useful headless and as a default."""

    def load(self, source: str) -> None:
        pass

    def play(self) -> None:
        pass

    def pause(self) -> None:
        pass

    def seek(self, position_s: float) -> None:
        pass

    def unload(self) -> None:
        pass


class PlaybackController:
    """Owns exactly one PlaybackResource and the state derived from it.

    Invariant: ``status`` is IDLE if and only if ``resource`` is None.
    """

    def __init__(
        self,
        fallback_url: str,
        engine: MediaEngine | None = None,
        on_notice: Callable[[Notice], None] | None = None,
    ) -> None:
        self._fallback_url = fallback_url
        self._engine: MediaEngine = engine if engine is not None else NullMediaEngine()
        self._on_notice = on_notice
        self._resource: PlaybackResource | None = None
        self._status = PlaybackStatus.IDLE
        self._progress = 0.0

    # ------------------------------------------------------------------
    # Read model
    # ------------------------------------------------------------------

    @property
    def status(self) -> PlaybackStatus:
        return self._status

    @property
    def resource(self) -> PlaybackResource | None:
        return self._resource

    @property
    def origin(self) -> ResourceOrigin | None:
        return self._resource.origin if self._resource is not None else None

    @property
    def progress_fraction(self) -> float:
        return self._progress

    @property
    def status_text(self) -> str:
        return project_status(self._status, self.origin)

    def snapshot(self) -> PlaybackSnapshot:
        return PlaybackSnapshot(
            status=self._status,
            origin=self.origin,
            progress_fraction=self._progress,
            status_text=self.status_text,
        )

    # ------------------------------------------------------------------
    # Resource lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Load the fallback clip if nothing is loaded yet. Idempotent."""
        if self._resource is not None:
            return
        logger.info("Loading fallback clip %s", self._fallback_url)
        self._attach(PlaybackResource.fallback(self._fallback_url))

    def replace_with_generated(self, resource: PlaybackResource) -> None:
        """Swap in freshly generated audio from any state.

        Passing the resource already loaded rewinds it and returns to READY.

        Raises:
            PlaybackStateError: If called before initialize() or with a released resource.
        """
        if self._resource is None:
            raise PlaybackStateError("initialize() must be called before loading generated audio")
        if resource is self._resource:
            self.stop()
            return
        if resource.released:
            raise PlaybackStateError("Cannot load a resource that has already been released")

        resource.origin = ResourceOrigin.GENERATED
        logger.info("Replacing %s resource with generated audio", self._resource.origin.value)
        self._attach(resource)

    def generation_failed(self, error: ClassifiedError | None = None) -> None:
        """Record a failed generation attempt without touching the current resource."""
        if error is not None:
            logger.warning(
                "Voice generation failed (%s): %s", error.kind.value, error.raw_detail or "-"
            )
            self._notify(notice_for_error(error))
        # Keep the fallback safety net available even if no story was loaded yet.
        self.initialize()

    def close(self) -> None:
        """Release the current resource and return to IDLE."""
        if self._resource is None:
            return
        self._engine.pause()
        self._engine.unload()
        resource, self._resource = self._resource, None
        self._status = PlaybackStatus.IDLE
        self._progress = 0.0
        resource.release()

    def __enter__(self) -> "PlaybackController":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.close()

    def _attach(self, resource: PlaybackResource) -> None:
        previous = self._resource
        if previous is not None:
            # Silence the superseded source before its handle goes away.
            self._engine.pause()
            self._engine.unload()
        self._resource = resource
        self._status = PlaybackStatus.READY
        self._progress = 0.0
        if previous is not None:
            previous.release()
        self._engine.load(resource.handle)

    # ------------------------------------------------------------------
    # User commands
    # ------------------------------------------------------------------

    def play(self) -> None:
        if self._resource is None:
            self._report_unavailable()
            return
        if self._status is PlaybackStatus.PLAYING:
            return
        if self._status is PlaybackStatus.ENDED:
            self._engine.seek(0.0)
            self._progress = 0.0

        try:
            self._engine.play()
        except Exception as e:  # noqa: BLE001 - any engine failure is a playback error
            self.on_playback_error(e)
            return
        self._status = PlaybackStatus.PLAYING

    def pause(self) -> None:
        if self._status is not PlaybackStatus.PLAYING:
            return
        self._engine.pause()
        self._status = PlaybackStatus.PAUSED

    def toggle_play_pause(self) -> None:
        """Play when not playing, pause when playing. Reported no-op while IDLE."""
        if self._resource is None:
            self._report_unavailable()
            return
        if self._status is PlaybackStatus.PLAYING:
            self.pause()
        else:
            self.play()

    def stop(self) -> None:
        """Halt playback and rewind to the start."""
        if self._resource is None:
            logger.debug("stop() ignored: no audio loaded")
            return
        self._engine.pause()
        self._engine.seek(0.0)
        self._status = PlaybackStatus.READY
        self._progress = 0.0

    # ------------------------------------------------------------------
    # Media clock callbacks
    # ------------------------------------------------------------------

    def on_progress(self, current_time: float | None, duration: float | None) -> None:
        """Track position as a fraction of duration while playing."""
        if self._status is not PlaybackStatus.PLAYING:
            return
        if not duration or current_time is None:
            return
        if math.isnan(duration) or math.isnan(current_time) or duration <= 0:
            return
        if math.isinf(duration):
            # Live or unknown-length stream
            return
        self._progress = min(1.0, max(0.0, current_time / duration))

    def on_ended(self) -> None:
        if self._status is not PlaybackStatus.PLAYING:
            return
        self._status = PlaybackStatus.ENDED
        self._progress = 1.0

    def on_playback_error(self, exc: BaseException | None = None) -> None:
        """Decode or network failure while playing; the resource is kept."""
        if self._resource is None:
            return
        logger.error("Audio playback error on %s: %s", self._resource.handle, exc or "unknown")
        self._engine.pause()
        self._status = PlaybackStatus.READY
        self._progress = 0.0
        self._notify(Notice(NoticeLevel.ERROR, PLAYBACK_FAILED_MESSAGE))

    # ------------------------------------------------------------------

    def _report_unavailable(self) -> None:
        logger.warning("Playback command ignored: no audio loaded")
        self._notify(Notice(NoticeLevel.ERROR, AUDIO_UNAVAILABLE_MESSAGE))

    def _notify(self, notice: Notice) -> None:
        if self._on_notice is not None:
            self._on_notice(notice)

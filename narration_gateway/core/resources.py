"""Playable audio resources and their release discipline."""

import logging
import shutil
import tempfile
from collections.abc import Callable
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)


class ResourceOrigin(str, Enum):
    """Where a playable resource came from."""

    FALLBACK = "fallback"
    GENERATED = "generated"


class PlaybackResource:
    """An exclusively owned reference to decodable audio.

    ``handle`` is a URL or a filesystem path the media engine can load. Any
    transient backing storage is freed by :meth:`release`, which runs its hook
    at most once.
    """

    def __init__(
        self,
        origin: ResourceOrigin,
        handle: str,
        release_hook: Callable[[], None] | None = None,
    ) -> None:
        self.origin = origin
        self.handle = handle
        self._release_hook = release_hook
        self._released = False

    @classmethod
    def fallback(cls, url: str) -> "PlaybackResource":
        """The always-available default clip. Nothing to free."""
        return cls(ResourceOrigin.FALLBACK, url)

    @classmethod
    def from_audio_bytes(cls, data: bytes, suffix: str = ".mp3") -> "PlaybackResource":
        """Write generated audio to a private temp directory removed on release."""
        temp_dir = tempfile.mkdtemp(prefix="narration_audio_")
        path = Path(temp_dir) / f"narration{suffix}"
        try:
            path.write_bytes(data)
        except Exception:
            shutil.rmtree(temp_dir, ignore_errors=True)
            raise

        def _remove() -> None:
            shutil.rmtree(temp_dir, ignore_errors=True)

        logger.debug("Stored %d bytes of generated audio at %s", len(data), path)
        return cls(ResourceOrigin.GENERATED, str(path), release_hook=_remove)

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> bool:
        """Free the backing storage.

        Returns:
            True if this call performed the release, False if it was already done.
        """
        if self._released:
            logger.debug("Resource %s already released", self.handle)
            return False
        self._released = True
        if self._release_hook is not None:
            self._release_hook()
            logger.debug("Released %s resource %s", self.origin.value, self.handle)
        return True

    def __repr__(self) -> str:
        return (
            f"PlaybackResource(origin={self.origin.value!r}, handle={self.handle!r}, "
            f"released={self._released})"
        )

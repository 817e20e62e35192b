"""Status and notice contract shared between the playback layer and a UI."""

from dataclasses import dataclass
from enum import Enum

from narration_gateway.core.classifier import ClassifiedError, ErrorKind
from narration_gateway.core.resources import ResourceOrigin


class PlaybackStatus(str, Enum):
    """Playback lifecycle states."""

    IDLE = "idle"
    READY = "ready"
    PLAYING = "playing"
    PAUSED = "paused"
    ENDED = "ended"


class NoticeLevel(str, Enum):
    """Severity of a transient user notice."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Notice:
    """A transient message for the user, e.g. a toast."""

    level: NoticeLevel
    message: str


@dataclass(frozen=True)
class PlaybackSnapshot:
    """Read model of the controller for display."""

    status: PlaybackStatus
    origin: ResourceOrigin | None
    progress_fraction: float
    status_text: str


NO_AUDIO_TEXT = "no audio yet"

_READY_TEXT: dict[ResourceOrigin, str] = {
    ResourceOrigin.FALLBACK: "preview: default clip",
    ResourceOrigin.GENERATED: "ready to play",
}

_STATUS_TEXT: dict[PlaybackStatus, str] = {
    PlaybackStatus.IDLE: NO_AUDIO_TEXT,
    PlaybackStatus.PLAYING: "playing…",
    PlaybackStatus.PAUSED: "paused",
    PlaybackStatus.ENDED: "finished",
}


def project_status(status: PlaybackStatus, origin: ResourceOrigin | None) -> str:
    """Display text for a (status, origin) pair. Defined for every combination."""
    if status is PlaybackStatus.READY:
        if origin is None:
            return NO_AUDIO_TEXT
        return _READY_TEXT[origin]
    return _STATUS_TEXT[status]


def notice_for_error(error: ClassifiedError) -> Notice:
    """Quota problems are a warning to wait or upgrade; everything else is an error."""
    level = NoticeLevel.WARNING if error.kind is ErrorKind.QUOTA else NoticeLevel.ERROR
    return Notice(level=level, message=error.user_message)

"""Narration Gateway - resilient story narration on top of generative APIs.

A Python library that writes a short story with an OpenAI-compatible text
service, narrates it with an ElevenLabs-compatible speech service, and keeps
an audio experience available whatever those services do: upstream failures
are classified into a small stable taxonomy, and playback falls back to a
default clip until narration succeeds.

Usage:
    >>> from narration_gateway import NarrationConfig, PlaybackController, classify_error
    >>>
    >>> classify_error(429, {"detail": {"status": "quota_exceeded"}}).kind
    <ErrorKind.QUOTA: 'quota'>
    >>> controller = PlaybackController(NarrationConfig().fallback_audio_url)
    >>> controller.initialize()
    >>> controller.status_text
    'preview: default clip'
"""

__version__ = "0.1.0"

# Public library API exports
from narration_gateway.core.classifier import (
    CLASSIFICATION_RULES,
    ClassifiedError,
    ErrorKind,
    classify_error,
    classify_exception,
    configuration_error,
    validation_error,
)
from narration_gateway.core.config import NarrationConfig
from narration_gateway.core.operations import generate_story, synthesize_speech
from narration_gateway.core.playback import MediaEngine, NullMediaEngine, PlaybackController
from narration_gateway.core.resources import PlaybackResource, ResourceOrigin
from narration_gateway.core.session import GenerationOutcome, NarrationSession
from narration_gateway.core.status import (
    Notice,
    NoticeLevel,
    PlaybackSnapshot,
    PlaybackStatus,
    project_status,
)

# Export exceptions for library users
from narration_gateway.core.exceptions import (
    ConfigurationError,
    InvalidRequestError,
    NarrationError,
    PlaybackStateError,
    UpstreamError,
    UpstreamTimeoutError,
    UpstreamUnreachableError,
)

__all__ = [
    "__version__",
    # Configuration
    "NarrationConfig",
    # Error classification
    "CLASSIFICATION_RULES",
    "ClassifiedError",
    "ErrorKind",
    "classify_error",
    "classify_exception",
    "configuration_error",
    "validation_error",
    # Playback
    "MediaEngine",
    "NullMediaEngine",
    "PlaybackController",
    "PlaybackResource",
    "ResourceOrigin",
    "PlaybackSnapshot",
    "PlaybackStatus",
    "Notice",
    "NoticeLevel",
    "project_status",
    # Session and operations
    "NarrationSession",
    "GenerationOutcome",
    "generate_story",
    "synthesize_speech",
    # Exceptions
    "NarrationError",
    "ConfigurationError",
    "InvalidRequestError",
    "PlaybackStateError",
    "UpstreamError",
    "UpstreamTimeoutError",
    "UpstreamUnreachableError",
]

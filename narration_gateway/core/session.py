"""Narration session: the caller that connects generation results to playback."""

import logging
from collections.abc import Awaitable, Callable
from enum import Enum

from narration_gateway.core.classifier import (
    ClassifiedError,
    classify_exception,
    validation_error,
)
from narration_gateway.core.logging import request_context
from narration_gateway.core.playback import PlaybackController
from narration_gateway.core.resources import PlaybackResource
from narration_gateway.core.status import Notice, NoticeLevel

logger = logging.getLogger(__name__)

VOICE_GENERATED_MESSAGE = "Voice generated successfully!"

Synthesizer = Callable[[str], Awaitable[bytes]]


class GenerationOutcome(str, Enum):
    """What happened to a voice generation request."""

    APPLIED = "applied"
    FAILED = "failed"
    STALE = "stale"
    DUPLICATE = "duplicate"


class NarrationSession:
    """One story and its narration for a single user.

    Only the most recently issued generation may change the loaded audio;
    results of superseded requests are dropped. A second request for the same
    text while one is outstanding is refused.
    """

    def __init__(
        self,
        controller: PlaybackController,
        synthesize: Synthesizer,
        on_notice: Callable[[Notice], None] | None = None,
        audio_suffix: str = ".mp3",
    ) -> None:
        self.controller = controller
        self._synthesize = synthesize
        self._on_notice = on_notice
        self._audio_suffix = audio_suffix
        self._story = ""
        self._latest_request = 0
        self._pending_text: str | None = None
        self.last_error: ClassifiedError | None = None

    @property
    def story(self) -> str:
        return self._story

    @property
    def generation_pending(self) -> bool:
        return self._pending_text is not None

    def set_story(self, text: str) -> None:
        """Store new story text and make sure the fallback clip is playable."""
        self._story = text
        # Narration requested for the previous story no longer applies.
        self._latest_request += 1
        self._pending_text = None
        self.controller.initialize()

    async def generate_voice(self) -> GenerationOutcome:
        """Narrate the current story and load the result into the controller."""
        with request_context() as rid:
            text = self._story
            if not text or not text.strip():
                self._fail(validation_error("No story to narrate"))
                return GenerationOutcome.FAILED

            if self._pending_text == text:
                logger.info("Voice generation already in progress for this story")
                return GenerationOutcome.DUPLICATE

            self._latest_request += 1
            request_no = self._latest_request
            self._pending_text = text
            logger.info("Voice generation #%d started (%s)", request_no, rid)

            try:
                try:
                    audio = await self._synthesize(text)
                except Exception as e:  # noqa: BLE001 - every failure is classified here
                    if request_no != self._latest_request:
                        logger.info("Dropping failure of superseded generation #%d", request_no)
                        return GenerationOutcome.STALE
                    self._fail(classify_exception(e))
                    return GenerationOutcome.FAILED

                if request_no != self._latest_request:
                    logger.info("Dropping result of superseded generation #%d", request_no)
                    return GenerationOutcome.STALE

                return self._apply(audio)
            finally:
                # Cancellation included: a finished or abandoned request is no longer in flight.
                if request_no == self._latest_request:
                    self._pending_text = None

    def _apply(self, audio: bytes) -> GenerationOutcome:
        resource = None
        try:
            resource = PlaybackResource.from_audio_bytes(audio, self._audio_suffix)
            self.controller.initialize()
            self.controller.replace_with_generated(resource)
        except Exception as e:  # noqa: BLE001
            if resource is not None and self.controller.resource is not resource:
                resource.release()
            self._fail(classify_exception(e))
            return GenerationOutcome.FAILED

        self.last_error = None
        self._notify(Notice(NoticeLevel.SUCCESS, VOICE_GENERATED_MESSAGE))
        return GenerationOutcome.APPLIED

    def close(self) -> None:
        self._latest_request += 1
        self._pending_text = None
        self.controller.close()

    def _fail(self, error: ClassifiedError) -> None:
        self.last_error = error
        self.controller.generation_failed(error)

    def _notify(self, notice: Notice) -> None:
        if self._on_notice is not None:
            self._on_notice(notice)

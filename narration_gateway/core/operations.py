"""High-level operations API for the narration gateway library."""

import logging

from narration_gateway.core.client import request_speech, request_story_completion
from narration_gateway.core.config import NarrationConfig
from narration_gateway.core.exceptions import ConfigurationError, InvalidRequestError

logger = logging.getLogger(__name__)


async def generate_story(idea: str | None, config: NarrationConfig) -> str:
    """Write a short story from an idea.

    Raises:
        ConfigurationError: If no text service API key is configured.
        InvalidRequestError: If the idea is missing or blank.
        UpstreamError: If the text service fails.
    """
    if not config.openai_api_key:
        logger.error("OPENAI_API_KEY is missing")
        raise ConfigurationError("OpenAI API key not configured")

    if not idea or not idea.strip():
        raise InvalidRequestError("Story idea is required")

    logger.info("Generating story for idea of length %d", len(idea))
    story = await request_story_completion(idea.strip(), config)
    logger.info("Story generated successfully")
    return story


async def synthesize_speech(text: str | None, config: NarrationConfig) -> bytes:
    """Narrate text with the speech service.

    Raises:
        ConfigurationError: If no speech service API key is configured.
        InvalidRequestError: If the text is missing or blank.
        UpstreamError: If the speech service fails.
    """
    if not config.elevenlabs_api_key:
        logger.error("ELEVENLABS_API_KEY is missing")
        raise ConfigurationError("ElevenLabs API key not configured")

    if not text or not text.strip():
        raise InvalidRequestError("Text is required")

    logger.info("Generating audio for text length %d", len(text))
    return await request_speech(text, config)

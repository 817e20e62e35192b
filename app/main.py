"""FastAPI application entry point for the narration proxy."""

import base64
import json
import logging
from datetime import datetime, timezone
from typing import Any, TypeVar

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from app import __version__
from app.config import get_settings
from app.middleware import RequestIDMiddleware
from app.schemas import AudioRequest, AudioResponse, ErrorResponse, HealthResponse, StoryRequest, StoryResponse
from narration_gateway.core.classifier import ClassifiedError, classify_exception
from narration_gateway.core.config import NarrationConfig
from narration_gateway.core.exceptions import ConfigurationError, InvalidRequestError, NarrationError
from narration_gateway.core.logging import setup_logging
from narration_gateway.core.operations import generate_story, synthesize_speech

logger = logging.getLogger(__name__)

PayloadT = TypeVar("PayloadT", bound=BaseModel)


def _load_settings_safe():
    """Load settings, returning None when config is unavailable (e.g. tests)."""
    try:
        return get_settings()
    except ValueError:
        return None


def create_app() -> FastAPI:
    """Build and return the FastAPI application with all middleware configured."""
    settings = _load_settings_safe()

    if settings is not None:
        setup_logging(settings.log_level)

    application = FastAPI(
        title="Narration Gateway",
        description="Story and narration proxy with classified upstream errors",
        version=__version__,
    )

    # Outermost first: request ID is assigned before anything else
    application.add_middleware(RequestIDMiddleware)

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allow_origins_list if settings else [],
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    return application


app = create_app()


def _load_config() -> NarrationConfig:
    try:
        return get_settings().to_config()
    except ValueError as e:
        raise ConfigurationError(str(e)) from e


async def _read_payload(request: Request, model: type[PayloadT]) -> PayloadT:
    """Parse the request body into ``model`` or raise InvalidRequestError."""
    body_bytes = await request.body()
    try:
        payload: Any = json.loads(body_bytes or b"null")
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidRequestError(f"Invalid JSON in request body: {e}") from e
    if not isinstance(payload, dict):
        raise InvalidRequestError("Request body must be a JSON object")
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise InvalidRequestError(f"Invalid request body: {e.errors()}") from e


def _error_response(classified: ClassifiedError) -> JSONResponse:
    return JSONResponse(
        status_code=classified.recommended_status,
        content=ErrorResponse.from_classified(classified).model_dump(),
    )


def _classified_failure(endpoint: str, exc: Exception) -> JSONResponse:
    """Classify a failure once at the HTTP boundary; vendor text only goes to logs."""
    classified = classify_exception(exc)
    if isinstance(exc, NarrationError):
        logger.warning(
            "%s failed (%s): %s",
            endpoint,
            classified.kind.value,
            classified.raw_detail or "-",
        )
    else:
        logger.exception(f"Unexpected error in {endpoint}: {exc}")
    return _error_response(classified)


@app.get("/api/health")
async def health() -> HealthResponse:
    """Health check endpoint."""
    settings = _load_settings_safe()
    return HealthResponse(
        environment=settings.environment if settings else "unknown",
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=__version__,
    )


@app.post("/api/generate-story", response_model=StoryResponse)
async def generate_story_endpoint(request: Request):
    """
    Write a short story from {"idea": "..."} with the upstream text service.
    """
    try:
        config = _load_config()
        payload = await _read_payload(request, StoryRequest)
        story = await generate_story(payload.idea, config)
        return StoryResponse(story=story)
    except Exception as e:  # noqa: BLE001 - every failure leaves as a classified response
        return _classified_failure("generate-story", e)


@app.post("/api/generate-audio", response_model=AudioResponse)
async def generate_audio_endpoint(request: Request):
    """
    Narrate {"text": "..."} with the upstream speech service.

    Returns the audio base64-encoded so browsers can build a playable blob.
    """
    try:
        config = _load_config()
        payload = await _read_payload(request, AudioRequest)
        audio = await synthesize_speech(payload.text, config)
        logger.info("Audio generated successfully, size: %d", len(audio))
        return AudioResponse(audio=base64.b64encode(audio).decode("ascii"))
    except Exception as e:  # noqa: BLE001 - every failure leaves as a classified response
        return _classified_failure("generate-audio", e)


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run("app.main:app", host=_settings.host, port=_settings.port)

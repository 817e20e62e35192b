"""HTTP calls to the upstream text and speech services, and to the narration proxy."""

import base64
import binascii
import json
import logging
from typing import Any

import httpx

from narration_gateway.core.config import NarrationConfig
from narration_gateway.core.exceptions import (
    UpstreamError,
    UpstreamTimeoutError,
    UpstreamUnreachableError,
)

logger = logging.getLogger(__name__)


def _parse_body(response: httpx.Response) -> Any:
    """Best-effort body: JSON when it parses, text otherwise."""
    try:
        return response.json()
    except (json.JSONDecodeError, ValueError):
        return response.text


async def _post(
    base_url: str,
    path: str,
    payload: dict[str, Any],
    config: NarrationConfig,
    headers: dict[str, str] | None = None,
) -> httpx.Response:
    """
    POST a JSON payload and return the successful response.

    Raises:
        UpstreamError: If the upstream answers with a 4xx/5xx status
        UpstreamUnreachableError: If connection to upstream fails
        UpstreamTimeoutError: If upstream request times out
    """
    url = f"{base_url.rstrip('/')}{path}"

    timeout = httpx.Timeout(
        config.timeout_s,
        connect=config.connect_timeout_s,
    )

    request_headers = {"Content-Type": "application/json"}
    if headers:
        request_headers.update(headers)

    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            logger.debug(f"POST {url}")
            response = await client.post(url, json=payload, headers=request_headers)

    except (httpx.ConnectError, httpx.NetworkError) as e:
        logger.error(f"Connection error to upstream {url}: {e}")
        raise UpstreamUnreachableError(
            f"Connection to upstream failed: {str(e)}",
            upstream=base_url,
        ) from e

    except httpx.TimeoutException as e:
        logger.error(f"Timeout error to upstream {url}: {e}")
        raise UpstreamTimeoutError(
            "Upstream service did not respond in time",
            upstream=base_url,
        ) from e

    if response.is_error:
        body = _parse_body(response)
        logger.warning(f"Upstream {url} returned HTTP {response.status_code}")
        raise UpstreamError(
            f"Upstream returned HTTP {response.status_code}",
            upstream=base_url,
            status_code=response.status_code,
            body=body,
        )

    return response


def _unexpected_structure(response: httpx.Response, base_url: str) -> UpstreamError:
    # A 2xx body is not an error report; it stays out of classification.
    return UpstreamError(
        f"Upstream returned an unexpected response structure: {response.text[:200]}",
        upstream=base_url,
    )


async def request_story_completion(idea: str, config: NarrationConfig) -> str:
    """Ask the text service for a short story and return its text."""
    request_body: dict[str, Any] = {
        "model": config.story_model,
        "messages": [
            {"role": "system", "content": config.story_system_prompt},
            {"role": "user", "content": f"Write a short story based on this idea: {idea}"},
        ],
        "max_tokens": config.story_max_tokens,
        "temperature": config.story_temperature,
    }

    response = await _post(
        config.text_base_url,
        "/v1/chat/completions",
        request_body,
        config,
        headers={"Authorization": f"Bearer {config.openai_api_key}"},
    )

    try:
        return response.json()["choices"][0]["message"]["content"]
    except (json.JSONDecodeError, ValueError, KeyError, IndexError, TypeError) as e:
        logger.error(f"Failed to parse story completion: {e}")
        raise _unexpected_structure(response, config.text_base_url) from e


async def request_speech(text: str, config: NarrationConfig) -> bytes:
    """Convert text to speech and return the encoded audio bytes."""
    request_body: dict[str, Any] = {
        "text": text,
        "model_id": config.tts_model_id,
        "voice_settings": {
            "stability": config.voice_stability,
            "similarity_boost": config.voice_similarity_boost,
        },
    }

    response = await _post(
        config.speech_base_url,
        f"/v1/text-to-speech/{config.voice_id}",
        request_body,
        config,
        headers={"xi-api-key": config.elevenlabs_api_key or "", "Accept": "audio/mpeg"},
    )

    if not response.content:
        raise _unexpected_structure(response, config.speech_base_url)
    logger.info("Speech generated, %d bytes", len(response.content))
    return response.content


async def request_proxy_story(idea: str, config: NarrationConfig) -> str:
    """Front-end side of the proxy: POST /api/generate-story."""
    response = await _post(config.proxy_base_url, "/api/generate-story", {"idea": idea}, config)
    try:
        return response.json()["story"]
    except (json.JSONDecodeError, ValueError, KeyError, TypeError) as e:
        raise _unexpected_structure(response, config.proxy_base_url) from e


async def request_proxy_speech(text: str, config: NarrationConfig) -> bytes:
    """Front-end side of the proxy: POST /api/generate-audio, base64 audio decoded."""
    response = await _post(config.proxy_base_url, "/api/generate-audio", {"text": text}, config)
    try:
        return base64.b64decode(response.json()["audio"], validate=True)
    except (json.JSONDecodeError, ValueError, KeyError, TypeError, binascii.Error) as e:
        raise _unexpected_structure(response, config.proxy_base_url) from e

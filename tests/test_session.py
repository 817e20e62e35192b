"""Tests for the narration session: generation results applied to playback."""

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from narration_gateway.core.classifier import USER_MESSAGES, ErrorKind
from narration_gateway.core.exceptions import UpstreamError, UpstreamUnreachableError
from narration_gateway.core.resources import ResourceOrigin
from narration_gateway.core.session import (
    VOICE_GENERATED_MESSAGE,
    GenerationOutcome,
    NarrationSession,
)
from narration_gateway.core.status import NoticeLevel, PlaybackStatus

QUOTA_BODY = {"detail": {"status": "quota_exceeded", "message": "This request exceeds your quota of 10000."}}


def _gated_synthesizer():
    """Synthesizer whose calls block until the gate for their text is opened."""
    gates: dict[str, asyncio.Event] = {}
    calls: list[str] = []

    async def synthesize(text: str) -> bytes:
        calls.append(text)
        gate = gates.setdefault(text, asyncio.Event())
        await gate.wait()
        return f"audio-{text}".encode()

    def open_gate(text: str) -> None:
        gates.setdefault(text, asyncio.Event()).set()

    return synthesize, open_gate, calls


@pytest.mark.asyncio
async def test_set_story_initializes_fallback(controller):
    session = NarrationSession(controller, AsyncMock(return_value=b"mp3"))
    session.set_story("Once upon a time")
    assert session.story == "Once upon a time"
    assert controller.status is PlaybackStatus.READY
    assert controller.origin is ResourceOrigin.FALLBACK


@pytest.mark.asyncio
async def test_generate_without_story_is_validation_failure(controller, notices):
    synthesize = AsyncMock(return_value=b"mp3")
    session = NarrationSession(controller, synthesize)

    outcome = await session.generate_voice()

    assert outcome is GenerationOutcome.FAILED
    assert session.last_error.kind is ErrorKind.VALIDATION
    synthesize.assert_not_called()
    # Fallback stays available
    assert controller.origin is ResourceOrigin.FALLBACK
    assert notices[-1].message == USER_MESSAGES[ErrorKind.VALIDATION]


@pytest.mark.asyncio
async def test_successful_generation_replaces_fallback(controller, notices):
    session = NarrationSession(controller, AsyncMock(return_value=b"generated-mp3"), on_notice=notices.append)
    session.set_story("A dragon learns to knit")

    outcome = await session.generate_voice()

    assert outcome is GenerationOutcome.APPLIED
    assert controller.status is PlaybackStatus.READY
    assert controller.origin is ResourceOrigin.GENERATED
    assert controller.status_text == "ready to play"
    assert Path(controller.resource.handle).read_bytes() == b"generated-mp3"
    assert session.last_error is None
    assert notices[-1].level is NoticeLevel.SUCCESS
    assert notices[-1].message == VOICE_GENERATED_MESSAGE
    assert not session.generation_pending


@pytest.mark.asyncio
async def test_second_generation_releases_previous_file(controller):
    session = NarrationSession(controller, AsyncMock(side_effect=[b"one", b"two"]))
    session.set_story("Story")
    await session.generate_voice()
    first_path = Path(controller.resource.handle)

    await session.generate_voice()

    assert not first_path.exists()
    assert Path(controller.resource.handle).read_bytes() == b"two"


@pytest.mark.asyncio
async def test_quota_failure_end_to_end(controller, notices):
    """Story exists, fallback playing, speech generation hits quota: playback continues."""
    synthesize = AsyncMock(
        side_effect=UpstreamError("Upstream returned HTTP 429", status_code=429, body=QUOTA_BODY)
    )
    session = NarrationSession(controller, synthesize)
    session.set_story("A lighthouse keeper and a storm")
    assert controller.status_text == "preview: default clip"
    controller.play()
    assert controller.status is PlaybackStatus.PLAYING

    outcome = await session.generate_voice()

    assert outcome is GenerationOutcome.FAILED
    assert session.last_error.kind is ErrorKind.QUOTA
    assert session.last_error.raw_detail == QUOTA_BODY["detail"]["message"]
    assert controller.status is PlaybackStatus.PLAYING
    assert controller.origin is ResourceOrigin.FALLBACK
    assert notices[-1].message == USER_MESSAGES[ErrorKind.QUOTA]
    assert "10000" not in notices[-1].message
    assert notices[-1].level is NoticeLevel.WARNING


@pytest.mark.asyncio
async def test_failure_after_success_keeps_generated(controller):
    synthesize = AsyncMock(side_effect=[b"good", UpstreamUnreachableError("Connection to upstream failed")])
    session = NarrationSession(controller, synthesize)
    session.set_story("Story")
    await session.generate_voice()
    generated = controller.resource

    outcome = await session.generate_voice()

    assert outcome is GenerationOutcome.FAILED
    assert session.last_error.kind is ErrorKind.NETWORK
    assert controller.resource is generated
    assert not generated.released


@pytest.mark.asyncio
async def test_unexpected_exception_is_classified(controller):
    session = NarrationSession(controller, AsyncMock(side_effect=RuntimeError("socket closed")))
    session.set_story("Story")

    outcome = await session.generate_voice()

    assert outcome is GenerationOutcome.FAILED
    assert session.last_error.kind is ErrorKind.NETWORK
    assert controller.origin is ResourceOrigin.FALLBACK


@pytest.mark.asyncio
async def test_duplicate_request_for_same_text_is_refused(controller):
    synthesize, open_gate, calls = _gated_synthesizer()
    session = NarrationSession(controller, synthesize)
    session.set_story("Same story")

    first = asyncio.create_task(session.generate_voice())
    await asyncio.sleep(0)
    assert session.generation_pending

    assert await session.generate_voice() is GenerationOutcome.DUPLICATE

    open_gate("Same story")
    assert await first is GenerationOutcome.APPLIED
    assert calls == ["Same story"]


@pytest.mark.asyncio
async def test_stale_result_is_discarded(controller):
    synthesize, open_gate, _ = _gated_synthesizer()
    session = NarrationSession(controller, synthesize)

    session.set_story("A")
    task_a = asyncio.create_task(session.generate_voice())
    await asyncio.sleep(0)

    session.set_story("B")
    task_b = asyncio.create_task(session.generate_voice())
    await asyncio.sleep(0)

    open_gate("B")
    assert await task_b is GenerationOutcome.APPLIED
    open_gate("A")
    assert await task_a is GenerationOutcome.STALE

    assert Path(controller.resource.handle).read_bytes() == b"audio-B"


@pytest.mark.asyncio
async def test_stale_result_arriving_first_is_discarded(controller):
    synthesize, open_gate, _ = _gated_synthesizer()
    session = NarrationSession(controller, synthesize)

    session.set_story("A")
    task_a = asyncio.create_task(session.generate_voice())
    await asyncio.sleep(0)
    session.set_story("B")
    task_b = asyncio.create_task(session.generate_voice())
    await asyncio.sleep(0)

    open_gate("A")
    assert await task_a is GenerationOutcome.STALE
    assert controller.origin is ResourceOrigin.FALLBACK

    open_gate("B")
    assert await task_b is GenerationOutcome.APPLIED
    assert controller.origin is ResourceOrigin.GENERATED


@pytest.mark.asyncio
async def test_stale_failure_does_not_touch_last_error(controller):
    release = asyncio.Event()

    async def synthesize(text: str) -> bytes:
        if text == "A":
            await release.wait()
            raise UpstreamError("Upstream returned HTTP 401", status_code=401, body={"error": "unauthorized"})
        return b"b-audio"

    session = NarrationSession(controller, synthesize)
    session.set_story("A")
    task_a = asyncio.create_task(session.generate_voice())
    await asyncio.sleep(0)

    session.set_story("B")
    assert await session.generate_voice() is GenerationOutcome.APPLIED

    release.set()
    assert await task_a is GenerationOutcome.STALE
    assert session.last_error is None
    assert controller.origin is ResourceOrigin.GENERATED


@pytest.mark.asyncio
async def test_close_releases_generated_audio(controller):
    session = NarrationSession(controller, AsyncMock(return_value=b"mp3"))
    session.set_story("Story")
    await session.generate_voice()
    path = Path(controller.resource.handle)

    session.close()

    assert not path.exists()
    assert controller.status is PlaybackStatus.IDLE


@pytest.mark.asyncio
async def test_cancelled_generation_can_be_retried(controller):
    synthesize, open_gate, calls = _gated_synthesizer()
    session = NarrationSession(controller, synthesize)
    session.set_story("Story")

    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(session.generate_voice(), timeout=0.01)
    assert not session.generation_pending

    open_gate("Story")
    assert await session.generate_voice() is GenerationOutcome.APPLIED
    assert calls == ["Story", "Story"]


@pytest.mark.asyncio
async def test_audio_storage_failure_is_classified(controller, notices):
    session = NarrationSession(controller, AsyncMock(return_value=b"mp3"))
    session.set_story("Story")

    with patch("tempfile.mkdtemp", side_effect=OSError(28, "No space left on device")):
        outcome = await session.generate_voice()

    assert outcome is GenerationOutcome.FAILED
    assert session.last_error.kind is ErrorKind.NETWORK
    assert "No space left" in session.last_error.raw_detail
    assert notices[-1].level is NoticeLevel.ERROR
    assert controller.origin is ResourceOrigin.FALLBACK
    assert not session.generation_pending


@pytest.mark.asyncio
async def test_non_bytes_audio_is_classified(controller):
    session = NarrationSession(controller, AsyncMock(return_value="not audio"))
    session.set_story("Story")

    assert await session.generate_voice() is GenerationOutcome.FAILED
    assert session.last_error.kind is ErrorKind.NETWORK
    assert controller.origin is ResourceOrigin.FALLBACK

"""Shared fixtures for playback and session tests."""

import pytest

from narration_gateway.core.playback import PlaybackController

FALLBACK_URL = "https://example.com/fallback.wav"


class RecordingEngine:
    """Media engine double that records every call in order."""

    def __init__(self):
        self.calls: list[tuple] = []
        self.source: str | None = None
        self.fail_on_play = False

    def load(self, source: str) -> None:
        self.calls.append(("load", source))
        self.source = source

    def play(self) -> None:
        self.calls.append(("play",))
        if self.fail_on_play:
            raise RuntimeError("decode error")

    def pause(self) -> None:
        self.calls.append(("pause",))

    def seek(self, position_s: float) -> None:
        self.calls.append(("seek", position_s))

    def unload(self) -> None:
        self.calls.append(("unload",))
        self.source = None


@pytest.fixture
def engine():
    return RecordingEngine()


@pytest.fixture
def notices():
    return []


@pytest.fixture
def controller(engine, notices):
    ctrl = PlaybackController(FALLBACK_URL, engine=engine, on_notice=notices.append)
    yield ctrl
    ctrl.close()

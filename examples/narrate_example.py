"""Example: Write a story and narrate it through a running narration proxy."""

import asyncio
import functools

from narration_gateway import NarrationConfig, NarrationSession, PlaybackController
from narration_gateway.core.client import request_proxy_speech, request_proxy_story


async def main():
    """Generate a story, then try to narrate it, falling back to the default clip."""
    config = NarrationConfig(proxy_base_url="http://localhost:3001")

    def show(notice):
        print(f"[{notice.level.value}] {notice.message}")

    controller = PlaybackController(config.fallback_audio_url, on_notice=show)
    session = NarrationSession(
        controller,
        functools.partial(request_proxy_speech, config=config),
        on_notice=show,
    )

    print("Requesting story...")
    story = await request_proxy_story("A lighthouse keeper who befriends a storm", config)
    print(f"\n{story}\n")

    session.set_story(story)
    print(f"Player: {controller.status_text}")

    outcome = await session.generate_voice()
    print(f"Narration: {outcome.value}")
    print(f"Player: {controller.status_text} ({controller.resource.handle})")

    session.close()


if __name__ == "__main__":
    asyncio.run(main())

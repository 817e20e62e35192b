"""Plain configuration for core library usage."""

from dataclasses import dataclass

DEFAULT_FALLBACK_AUDIO_URL = (
    "https://github.com/jan-zika/assets/releases/download/sound/trump_maduro_05.wav"
)

DEFAULT_STORY_SYSTEM_PROMPT = (
    "You are a creative storyteller. Write engaging short stories (200-300 words) "
    "based on the user's idea. Make them vivid, entertaining, and complete with a "
    "beginning, middle, and end."
)


@dataclass
class NarrationConfig:
    """Configuration for the narration gateway core library.

    No environment variables are read here; the HTTP service builds one of
    these from its settings, library users construct it directly.

    Args:
        openai_api_key: Credential for the upstream text service
        elevenlabs_api_key: Credential for the upstream speech service
        text_base_url: Base URL of the OpenAI-compatible text service
        speech_base_url: Base URL of the ElevenLabs-compatible speech service
        proxy_base_url: Base URL of this project's HTTP service, for clients
        story_model: Chat model used to write stories
        story_max_tokens: Completion token limit for a story
        story_temperature: Sampling temperature for a story
        story_system_prompt: System prompt for story generation
        voice_id: Speech service voice identifier
        tts_model_id: Speech service model identifier
        voice_stability: Voice stability setting (0.0-1.0)
        voice_similarity_boost: Voice similarity boost setting (0.0-1.0)
        timeout_s: Total timeout for upstream requests in seconds
        connect_timeout_s: Connection timeout for upstream requests in seconds
        fallback_audio_url: Default clip played before or instead of narration
    """

    openai_api_key: str | None = None
    elevenlabs_api_key: str | None = None
    text_base_url: str = "https://api.openai.com"
    speech_base_url: str = "https://api.elevenlabs.io"
    proxy_base_url: str = "http://localhost:3001"

    # Story generation settings
    story_model: str = "gpt-3.5-turbo"
    story_max_tokens: int = 500
    story_temperature: float = 0.8
    story_system_prompt: str = DEFAULT_STORY_SYSTEM_PROMPT

    # Speech generation settings
    voice_id: str = "EXAVITQu4vr4xnSDxMaL"
    tts_model_id: str = "eleven_monolingual_v1"
    voice_stability: float = 0.5
    voice_similarity_boost: float = 0.75

    timeout_s: float = 120.0
    connect_timeout_s: float = 10.0

    fallback_audio_url: str = DEFAULT_FALLBACK_AUDIO_URL

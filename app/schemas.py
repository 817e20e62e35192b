"""Request/response schemas for the narration proxy."""

from pydantic import BaseModel, Field

from narration_gateway.core.classifier import ClassifiedError


class StoryRequest(BaseModel):
    """Body of /api/generate-story."""

    idea: str | None = Field(default=None, description="Story idea to expand")


class AudioRequest(BaseModel):
    """Body of /api/generate-audio."""

    text: str | None = Field(default=None, description="Text to narrate")


class StoryResponse(BaseModel):
    """Response for /api/generate-story."""

    story: str = Field(description="Generated story text")


class AudioResponse(BaseModel):
    """Response for /api/generate-audio."""

    audio: str = Field(description="Base64-encoded narration audio (audio/mpeg)")


class ErrorResponse(BaseModel):
    """Structured error response format. Never carries vendor text."""

    error: str = Field(description="Fixed, human-readable message for the error kind")
    errorType: str = Field(description="Error kind identifier")

    @classmethod
    def from_classified(cls, classified: ClassifiedError) -> "ErrorResponse":
        return cls(error=classified.user_message, errorType=classified.kind.value)


class HealthResponse(BaseModel):
    """Response for /api/health."""

    status: str = "ok"
    environment: str
    timestamp: str
    version: str

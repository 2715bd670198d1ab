"""Runtime configuration for Dyslu."""

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from dyslu.errors import MissingCredentialError


class Settings(BaseSettings):
    """Environment-driven runtime settings."""

    model_config = SettingsConfigDict(
        env_prefix="DYSLU_",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    app_name: str = "dyslu"
    assistant_name: str = "Dyslu"
    log_level: str = "WARNING"

    openai_api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("DYSLU_OPENAI_API_KEY", "OPENAI_API_KEY"),
        description="Credential shared by the transcription, chat and speech APIs.",
    )
    openai_base_url: str | None = None
    request_timeout_seconds: float = 60.0

    transcription_model: str = "whisper-1"
    chat_model: str = "gpt-3.5-turbo"
    speech_model: str = "tts-1"
    speech_voice: str = "alloy"

    sample_rate: int = 16_000
    channels: int = 1
    input_device: str | None = None
    level_interval_seconds: float = 0.1

    reveal_interval_seconds: float = Field(default=0.05, description="Delay between revealed characters.")
    playback_grace_seconds: float = Field(
        default=5.0,
        description="Extra time allowed past a clip's duration before playback counts as stalled.",
    )
    playback_timeout_seconds: float = Field(
        default=120.0,
        description="Stall timeout used when the reply clip duration is unknown.",
    )

    persona_file: str | None = None
    include_history: bool = True

    def require_api_key(self) -> str:
        """Return the API key or fail when it is not configured."""
        if self.openai_api_key is None or not self.openai_api_key.get_secret_value().strip():
            raise MissingCredentialError(
                "Missing OpenAI API key. Set DYSLU_OPENAI_API_KEY or OPENAI_API_KEY in your environment or .env file."
            )
        return self.openai_api_key.get_secret_value().strip()


settings = Settings()

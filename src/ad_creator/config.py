"""Application configuration loaded from environment variables."""

from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "AD_CREATOR_",
        "extra": "ignore",
    }

    # Settings store (provider selection + API keys live here, not in env)
    storage_path: str = str(Path.home() / ".ad_creator" / "storage.json")

    # Logging
    log_level: str = "INFO"

    # Model Configuration
    text_model_openai: str = "gpt-4.1-2025-04-14"
    text_model_claude: str = "claude-sonnet-4-5-20250929"
    image_model_openai: str = "dall-e-3"
    tts_model_elevenlabs: str = "eleven_multilingual_v2"
    transcription_model: str = "whisper-1"

    # HTTP
    http_timeout_sec: float = 90.0

    # Long-running job polling (video rendering is much slower than images)
    image_poll_interval_sec: float = 2.0
    image_poll_max_attempts: int = 30
    video_poll_interval_sec: float = 5.0
    video_poll_max_attempts: int = 60

    # Output
    output_base_dir: str = "./output"


settings = Settings()

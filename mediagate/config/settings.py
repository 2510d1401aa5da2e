from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class OpenAIConfig(BaseSettings):
    """OpenAI speech-to-text configuration."""

    api_key: SecretStr | None = Field(
        default=None,
        validation_alias="OPENAI_API_KEY",
    )
    transcription_model: str = Field(
        default="whisper-1",
        validation_alias="OPENAI_TRANSCRIPTION_MODEL",
    )
    timeout_seconds: float = Field(
        default=300.0,
        validation_alias="OPENAI_TIMEOUT_SECONDS",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class CloudConvertConfig(BaseSettings):
    """CloudConvert job API configuration."""

    api_key: SecretStr | None = None
    sandbox: bool = False
    base_url: Optional[str] = None
    request_timeout_seconds: float = Field(default=60.0, gt=0)
    poll_interval_seconds: float = Field(default=2.0, gt=0)
    wait_timeout_seconds: float = Field(
        default=300.0,
        gt=0,
        description="Upper bound for waiting on a job to reach a terminal status.",
    )

    @property
    def api_url(self) -> str:
        """Resolve the REST base URL, honouring the sandbox switch."""
        if self.base_url:
            return self.base_url.rstrip("/")
        if self.sandbox:
            return "https://api.sandbox.cloudconvert.com/v2"
        return "https://api.cloudconvert.com/v2"

    model_config = SettingsConfigDict(
        env_prefix="CLOUDCONVERT_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class FfmpegConfig(BaseSettings):
    """Local transcoder configuration."""

    binary: str = "ffmpeg"
    audio_bitrate: str = "128k"
    timeout_seconds: float = Field(default=600.0, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="FFMPEG_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class RemoteFetchConfig(BaseSettings):
    """yt-dlp resolution and streaming download configuration."""

    proxy: Optional[str] = None
    chunk_size: int = Field(default=64 * 1024, ge=1024)
    title_max_length: int = Field(default=100, ge=1)
    timeout_seconds: float = Field(default=60.0, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="REMOTE_FETCH_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class WorkspaceConfig(BaseSettings):
    """Per-request scratch directory configuration."""

    root: Optional[str] = Field(
        default=None,
        description="Parent directory for workspaces; defaults to the system temp dir.",
    )
    prefix: str = "transcribe-session-"

    model_config = SettingsConfigDict(
        env_prefix="WORKSPACE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class Settings(BaseSettings):
    """Application settings"""

    app_name: str = "Media Conversion Gateway"
    app_version: str = "1.0.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    log_file: str = "logs/app.log"
    pipeline_log_file: str = "logs/pipelines.log"
    transcript_log_file: str = "logs/transcripts.log"

    # Speech-to-text
    openai: OpenAIConfig = Field(default_factory=OpenAIConfig)

    # Document conversion
    cloudconvert: CloudConvertConfig = Field(default_factory=CloudConvertConfig)

    # Audio extraction
    ffmpeg: FfmpegConfig = Field(default_factory=FfmpegConfig)

    # Remote media
    remote_fetch: RemoteFetchConfig = Field(default_factory=RemoteFetchConfig)

    # Workspaces
    workspace: WorkspaceConfig = Field(default_factory=WorkspaceConfig)

    # CORS
    cors_origins: list[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
settings = Settings()

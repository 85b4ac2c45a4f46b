from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    enabled: bool = True
    worker_path: str = "/vendor/pdf-sanitizer/pdf.worker.min.js"
    pdf_engine: str = "pymupdf"

    scale: float = Field(default=1.5, gt=0)
    quality: float = Field(default=0.85, gt=0, le=1)
    max_file_size_mb: int | None = Field(default=None, gt=0)
    max_pages: int | None = Field(default=None, gt=0)

    show_progress: bool = True
    log_errors: bool = True
    progress_fade_seconds: float = Field(default=0.2, ge=0)

    upload_url_patterns: list[str] = ["/livewire/upload-file", "/livewire/"]
    http_timeout_seconds: int = 30

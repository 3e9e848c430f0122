"""Application settings using Pydantic Settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging
    log_level: str = "INFO"

    # Container
    body_entry: str = "word/document.xml"

    # Table synthesis
    heading_max_chars: int = 200
    legend_marker: str = "INCREMENTO"
    legend_lookahead: int = 3

    # Rendering (soffice, http)
    render_backend: str = "soffice"
    soffice_binary: str = "soffice"
    render_timeout: int = 120
    converter_url: str = ""


# Global settings instance
settings = Settings()

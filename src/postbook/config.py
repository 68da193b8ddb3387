"""Configuration management using pydantic-settings."""

from pathlib import Path
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="POSTBOOK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Content repository
    posts_dir: Path = Field(default=Path("./_posts"), description="Directory holding post files")
    post_extension: str = Field(default=".md", description="Extension used for new posts")

    # Front-matter defaults for new posts
    default_layout: str = Field(default="post", description="Layout name passed to the renderer")
    default_comments: bool = Field(default=True, description="Enable comments on new posts")

    # Rendering hints consumed by the manifest
    permalink_pattern: str = Field(
        default="/:year/:month/:day/:slug/",
        description="Permalink pattern (:year, :month, :day, :slug placeholders)",
    )
    words_per_minute: int = Field(default=200, description="Reading speed for reading time")

    # Paths
    data_dir: Path = Field(default=Path("./data"), description="Data directory path")

    @property
    def manifest_file(self) -> Path:
        """Path to the generated site manifest."""
        return self.data_dir / "manifest.json"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

"""Pydantic Settings model supplying the defaults of the command line options."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings read from the environment or a .env file.

    Credentials are shared by the source and destination repositories.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=True, extra="ignore")

    DEBUG: bool = False
    GITHUB_API_URL: str = "https://api.github.com"

    # Either a personal access token...
    GITHUB_PAT_TOKEN: str | None = None

    # ...or a GitHub App installed on both repositories
    GITHUB_APP_ID: int | None = None
    GITHUB_APP_PRIVATE_KEY_PATH: Path | None = None
    GITHUB_APP_INSTALLATION_ID: int | None = None


settings = Settings()

from functools import lru_cache
from typing import Optional

from pydantic import Field, HttpUrl
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    github_token: Optional[str] = Field(default=None, alias="GITHUB_TOKEN")
    github_base_url: HttpUrl = Field(
        default="https://api.github.com", alias="GITHUB_BASE_URL"
    )
    github_proxy: Optional[str] = Field(default=None, alias="GITHUB_PROXY")
    user_agent: str = Field(default="GitHub-Profile-Finder", alias="USER_AGENT")
    lookup_timeout_seconds: float = Field(default=8.0, gt=0, alias="LOOKUP_TIMEOUT_SECONDS")
    repos_per_page: int = Field(default=30, ge=1, le=100, alias="REPOS_PER_PAGE")
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8020, alias="PORT")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"  # ignore unrelated env vars to avoid validation errors


@lru_cache
def get_settings() -> Settings:
    return Settings()

from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from showcase.errors import ConfigError

DEFAULT_FEATURED_REPOS: tuple[str, ...] = (
    "ppi-tui-predictor",
    "solar-ai-assistant",
    "surgical-nav-ai",
)


def _split_csv(raw: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class Config:
    github_username: str
    github_token: str = ""
    featured_repos: tuple[str, ...] = DEFAULT_FEATURED_REPOS
    listing_ttl: float = 600.0
    detail_ttl: float = 3600.0
    request_timeout: float = 10.0
    api_base_url: str = "https://api.github.com"
    environment: str = "development"
    cors_origins: tuple[str, ...] = field(default_factory=lambda: ("*",))
    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "INFO"
    version: str = "1.0.0"

    @property
    def is_development(self) -> bool:
        return self.environment.lower() != "production"

    @classmethod
    def from_env(cls) -> Config:
        load_dotenv()

        username = os.environ.get("GITHUB_USERNAME", "").strip()
        if not username:
            raise ConfigError("GITHUB_USERNAME is not set")

        featured = _split_csv(os.environ.get("FEATURED_REPOS", ""))
        try:
            return cls(
                github_username=username,
                github_token=os.environ.get("GITHUB_TOKEN", ""),
                featured_repos=featured or DEFAULT_FEATURED_REPOS,
                listing_ttl=float(os.environ.get("LISTING_CACHE_TTL", "600")),
                detail_ttl=float(os.environ.get("DETAIL_CACHE_TTL", "3600")),
                request_timeout=float(os.environ.get("GITHUB_TIMEOUT", "10")),
                api_base_url=os.environ.get("GITHUB_API_URL", "https://api.github.com"),
                environment=os.environ.get("APP_ENV", "development"),
                cors_origins=_split_csv(os.environ.get("CORS_ORIGINS", "*")) or ("*",),
                host=os.environ.get("HOST", "127.0.0.1"),
                port=int(os.environ.get("PORT", "8000")),
                log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
            )
        except ValueError as exc:
            raise ConfigError(f"Invalid numeric setting: {exc}") from exc

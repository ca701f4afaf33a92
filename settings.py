"""
Runtime settings read from the environment.
Entry points call load_dotenv() first so a local .env file is honoured; CLI flags override these values.
"""
import os
from dataclasses import dataclass
from typing import Optional


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


def _env_int(name: str, default: int) -> int:
    return int(_env_float(name, default))


@dataclass
class Settings:
    github_token: Optional[str] = None
    github_api_url: str = "https://api.github.com"
    request_timeout: float = 30.0
    max_retries: int = 3
    backoff_base: float = 1.0
    rate_floor: int = 20
    cache_ttl: float = 600.0
    quality_ttl: float = 1800.0
    cache_grace: float = 600.0
    cache_max_entries: int = 1000
    archetypes_path: Optional[str] = None

    @classmethod
    def from_env(cls) -> 'Settings':
        return cls(
            github_token=(os.getenv('GITHUB_TOKEN') or '').strip() or None,
            github_api_url=os.getenv('GITHUB_API_URL') or cls.github_api_url,
            request_timeout=_env_float('SPIRIT_REQUEST_TIMEOUT', cls.request_timeout),
            max_retries=_env_int('SPIRIT_MAX_RETRIES', cls.max_retries),
            backoff_base=_env_float('SPIRIT_BACKOFF_BASE', cls.backoff_base),
            rate_floor=_env_int('SPIRIT_RATE_FLOOR', cls.rate_floor),
            cache_ttl=_env_float('SPIRIT_CACHE_TTL', cls.cache_ttl),
            quality_ttl=_env_float('SPIRIT_QUALITY_TTL', cls.quality_ttl),
            cache_grace=_env_float('SPIRIT_CACHE_GRACE', cls.cache_grace),
            cache_max_entries=_env_int('SPIRIT_CACHE_MAX_ENTRIES', cls.cache_max_entries),
            archetypes_path=os.getenv('SPIRIT_ARCHETYPES') or None,
        )

"""
Application settings

Values are read from environment variables. A local `.env` file is loaded
first when present, so development setups do not need exported variables.

Variables:
- DATABASE_URL: SQLAlchemy URL of the tenant database
- DB_ECHO: log emitted SQL ("true"/"false")
- LOG_LEVEL: root log level
- API_PREFIX: prefix for every versioned route
- HIERARCHY_MAX_DEPTH: default depth limit for material hierarchies
"""
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

from .constants import DEFAULT_HIERARCHY_MAX_DEPTH

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    database_url: str
    db_echo: bool
    log_level: str
    api_prefix: str
    hierarchy_max_depth: int

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=os.getenv("DATABASE_URL", "sqlite:///./xrtraining.db"),
            db_echo=_env_bool("DB_ECHO"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            api_prefix=os.getenv("API_PREFIX", "/api/v1"),
            hierarchy_max_depth=int(
                os.getenv("HIERARCHY_MAX_DEPTH", str(DEFAULT_HIERARCHY_MAX_DEPTH))
            ),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings, read once"""
    return Settings.from_env()

"""Client configuration with environment fallbacks."""

import os
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field


def _load_env_file() -> None:
    """Load .env from the project root if present."""
    env_path = Path(__file__).parent.parent / ".env"
    if not env_path.is_file():
        return
    try:
        for line in env_path.read_text(encoding="utf-8").splitlines():
            stripped = line.strip()
            if stripped and not stripped.startswith("#") and "=" in stripped:
                key, value = stripped.split("=", 1)
                key, value = key.strip(), value.strip().strip("'\"")
                if key and value and key not in os.environ:
                    os.environ[key] = value
    except OSError:
        pass


_load_env_file()


DEFAULT_APP_NAME = "Adventure Client"
DEFAULT_APP_VERSION = "0.1.0"
DEFAULT_DATA_DIR = Path(__file__).resolve().parent.parent / "data"


def _env_int(name: str, fallback: int) -> int:
    try:
        return int(os.getenv(name, str(fallback)))
    except (TypeError, ValueError):
        return fallback


def _env_float(name: str, fallback: float) -> float:
    try:
        return float(os.getenv(name, str(fallback)))
    except (TypeError, ValueError):
        return fallback


def _get_port() -> int:
    """Get the UI port, checking PORT first, then ADVENTURE_PORT."""
    port = os.getenv("PORT") or os.getenv("ADVENTURE_PORT")
    if port:
        try:
            return int(port)
        except ValueError:
            pass
    return 8010


def _get_data_dir() -> Path:
    raw = os.getenv("ADVENTURE_DATA_DIR")
    return Path(raw).expanduser() if raw else DEFAULT_DATA_DIR


class Settings(BaseModel):
    """Client settings with lightweight env fallbacks."""

    # App metadata
    app_name: str = Field(default=DEFAULT_APP_NAME)
    app_version: str = Field(default=DEFAULT_APP_VERSION)

    # Local UI server
    server_host: str = Field(default=os.getenv("ADVENTURE_HOST", "127.0.0.1"))
    server_port: int = Field(default_factory=_get_port)

    # Backend API that proxies the language-model service
    api_base_url: str = Field(default=os.getenv("ADVENTURE_API_URL", "http://localhost:3001"))
    api_timeout_seconds: float = Field(default_factory=lambda: _env_float("ADVENTURE_API_TIMEOUT", 60.0))

    # Local persistence (document store + identity)
    data_dir: Path = Field(default_factory=_get_data_dir)
    document_store_backend: str = Field(default=os.getenv("ADVENTURE_DOCUMENT_STORE", "file"))

    # HTTP behaviour
    cors_allow_origins_raw: str = Field(default=os.getenv("ADVENTURE_CORS_ALLOW_ORIGINS", "*"))
    enable_docs: bool = Field(default=os.getenv("ADVENTURE_ENABLE_DOCS", "1") != "0")
    docs_url: Optional[str] = Field(default=os.getenv("ADVENTURE_DOCS_URL", "/docs"))

    # History consolidation controls
    summary_threshold: int = Field(default_factory=lambda: _env_int("ADVENTURE_SUMMARY_THRESHOLD", 30))
    token_threshold: int = Field(default_factory=lambda: _env_int("ADVENTURE_TOKEN_THRESHOLD", 8000))
    token_warning_ratio: float = Field(default=0.8)
    manual_summary_min_messages: int = Field(default=5)
    summary_progress_reset_seconds: float = Field(default=3.0)

    @property
    def cors_allow_origins(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        if self.cors_allow_origins_raw.strip() in {"", "*"}:
            return ["*"]
        return [origin.strip() for origin in self.cors_allow_origins_raw.split(",") if origin.strip()]

    @property
    def resolved_docs_url(self) -> Optional[str]:
        """Return documentation URL when docs are enabled."""
        return (self.docs_url or "/docs") if self.enable_docs else None

    @property
    def games_dir(self) -> Path:
        return self.data_dir / "games"

    @property
    def identity_path(self) -> Path:
        return self.data_dir / "identity.json"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

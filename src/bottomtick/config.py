"""Configuration management via environment variables.

Reads from .env file (via pydantic-settings) with sensible defaults.
All values can be overridden via environment variables.

Recommended:
    EDGAR_IDENTITY : Your name + email for SEC EDGAR API User-Agent header

Optional:
    DATA_DIR          : Root of the on-disk store (default ./data)
    FACTS_DIR         : Directory holding CIK##########.json companyfacts files
    TICKERS_PATH      : Ticker → CIK map written by the updater job
    LOAD_TIMEOUT      : Seconds to wait for one filing document to load
    SHORT_TERM_WINDOW : Default number of quarters for the short-term trend
    PORT              : Server port
"""

from pathlib import Path

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # SEC EDGAR API identity (name + email, required by SEC)
    edgar_identity: str = "BottomTick bottomtick@example.com"

    # On-disk store: raw companyfacts documents + ticker map
    data_dir: Path = Path("data")
    facts_dir: Path | None = None
    tickers_path: Path | None = None

    # Filing reads are the only blocking I/O on the request path
    load_timeout: float = 5.0

    # Trend + chart defaults
    short_term_window: int = 3
    chart_max_points: int = 24

    port: int = 8877
    log_level: str = "INFO"

    # Strip whitespace from string fields: the .env file often has
    # trailing spaces and stray quotes
    @field_validator("edgar_identity", "log_level", mode="before")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        if isinstance(v, str):
            return v.strip().strip('"').strip("'").strip()
        return v

    @field_validator("short_term_window")
    @classmethod
    def clamp_window(cls, v: int) -> int:
        return max(1, min(6, v))

    @model_validator(mode="after")
    def derive_paths(self) -> "Settings":
        if self.facts_dir is None:
            self.facts_dir = self.data_dir / "companyfacts"
        if self.tickers_path is None:
            self.tickers_path = self.data_dir / "company_tickers.json"
        return self

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


_config: Settings | None = None


def get_config() -> Settings:
    """Get or create the shared Settings singleton."""
    global _config
    if _config is None:
        _config = Settings()
    return _config


def reset_config(settings: Settings | None = None) -> None:
    """Replace (or clear) the shared Settings: used by tests and the CLI."""
    global _config
    _config = settings

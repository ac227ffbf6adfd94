"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ─────────────────────────────────────────────────
#
# Values are read from TWO sources (in priority order):
#
#   1. **Environment variables** - e.g. DISCOGS_TOKEN=abc123
#   2. **.env file** - key=value lines in the project root .env file
#
# Field name `discogs_token` maps to env var `DISCOGS_TOKEN`.
# Defaults apply when neither source sets a value.  An empty string
# means "not configured".
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """CD scan service settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # === Vision AI (OpenAI-compatible chat completions) ===
    openai_api_key: str = ""
    openai_base_url: str = ""  # Gateway URL for OpenAI-compatible APIs
    openai_vision_model: str = "gpt-4o"
    extraction_max_tokens: int = 1500
    llm_timeout_seconds: float = 60.0

    # === Discogs catalog ===
    # A personal user token wins over the consumer key/secret pair.
    discogs_token: str = ""
    discogs_consumer_key: str = ""
    discogs_consumer_secret: str = ""
    discogs_user_agent: str = "MusicScan/4.0"
    discogs_search_per_page: int = 10
    discogs_rate_limit_delay: float = 1.1  # seconds paused after each search

    # === Persistence ===
    scan_db_path: str = "data/cd_scans.db"

    # === Inbound auth ===
    # Comma-separated "token:user_id" pairs, e.g. "s3cret:user-1,other:user-2".
    api_tokens: str = ""

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    def has_discogs_credentials(self) -> bool:
        """Return ``True`` when a user token or a full key/secret pair is set."""
        if self.discogs_token:
            return True
        return bool(self.discogs_consumer_key and self.discogs_consumer_secret)

    def get_api_token_map(self) -> dict[str, str]:
        """Parse ``api_tokens`` into a ``{token: user_id}`` mapping.

        Malformed entries (missing colon, empty token or user) are skipped.
        """
        token_map: dict[str, str] = {}
        for pair in self.api_tokens.split(","):
            token, sep, user_id = pair.strip().partition(":")
            if sep and token and user_id:
                token_map[token] = user_id
        return token_map

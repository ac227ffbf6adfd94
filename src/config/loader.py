"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ───────────────────────────────────────────
#
# Configuration is loaded in layers (later layers override earlier):
#
#   1. config/config.yaml  - Static defaults checked into the repo
#                            (scoring weights, thresholds, pipeline version)
#   2. .env file           - Local developer overrides (not committed)
#   3. Environment vars    - Set at deploy time
#
# load_config() reads the YAML file first, then deep-merges the
# environment-based values on top.  build_scoring_config() turns the
# ``scoring`` section into a validated, frozen ScoringConfig.
# ──────────────────────────────────────────────────────────────────────
"""

from pathlib import Path

import yaml

from src.config.settings import Settings
from src.models.scoring import ScoringConfig

DEFAULT_PIPELINE_VERSION = "cd-scan-pipeline-v1.0"


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Settings fields that were explicitly set (environment, ``.env`` or
    keyword) override YAML values where keys overlap; Settings defaults
    never mask the YAML file.

    Args:
        path: Path to the YAML configuration file.
        settings: Settings instance to merge; a fresh one is created when omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    settings = settings or Settings()
    env_overrides = {
        "app": _explicit(settings, host="app_host", port="app_port", env="app_env"),
        "catalog": {
            **_explicit(
                settings,
                per_page="discogs_search_per_page",
                rate_limit_delay="discogs_rate_limit_delay",
            ),
            "credentials_configured": settings.has_discogs_credentials(),
        },
        "logging": _explicit(settings, level="log_level"),
    }

    _deep_merge(yaml_config, env_overrides)
    yaml_config.setdefault("pipeline", {}).setdefault("version", DEFAULT_PIPELINE_VERSION)
    return yaml_config


def build_scoring_config(config: dict) -> ScoringConfig:
    """Build a :class:`ScoringConfig` from the ``scoring`` config section.

    Missing keys fall back to the model defaults.  Raises
    ``ConfigurationError`` (via the model validator) when the no-matrix cap
    is not strictly below the single-match threshold.
    """
    return ScoringConfig(**(config.get("scoring") or {}))


def _explicit(settings: Settings, **keys: str) -> dict:
    """Map config keys to Settings values, keeping only fields that were set."""
    return {
        key: getattr(settings, field)
        for key, field in keys.items()
        if field in settings.model_fields_set
    }


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value

"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ───────────────────────────────────────────
#
# Configuration is loaded in layers (later layers override earlier):
#
#   1. config/config.yaml  — Static tunables checked into the repo
#                            (chunk sizes, retrieval weights)
#   2. .env file           — Local developer overrides (not committed)
#   3. Environment vars    — Set at deploy time
#
# load_config() reads the YAML file first, then deep-merges the
# environment-based values on top:
#   base = {"retrieval": {"case_name_bonus": 3}}
#   overrides = {"retrieval": {"top_k": 6}}        # RAG_TOP_K=6 was set
#   result = {"retrieval": {"case_name_bonus": 3, "top_k": 6}}
#
# Settings that mirror a YAML key (RAG_TOP_K, LLM_TEMPERATURE,
# HISTORY_WINDOW) only override it when explicitly set.
# ──────────────────────────────────────────────────────────────────────
"""

import os
from pathlib import Path

import structlog
import yaml

from src.config.settings import Settings
from src.utils.errors import ConfigurationError

logger = structlog.get_logger(logger_name=__name__)


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Environment variables (via Settings) override YAML values where keys overlap.

    Args:
        path: Path to the YAML configuration file.
        settings: Settings to merge; read from the environment when omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    settings = settings or Settings()
    # Values mirrored in the YAML override it only when explicitly set.
    explicit = settings.model_fields_set
    llm_overrides: dict = {"available_providers": settings.get_available_llm_providers()}
    if "llm_temperature" in explicit:
        llm_overrides["temperature"] = settings.llm_temperature
    if "history_window" in explicit:
        llm_overrides["history_window"] = settings.history_window
    retrieval_overrides: dict = {}
    if "rag_top_k" in explicit:
        retrieval_overrides["top_k"] = settings.rag_top_k

    env_overrides = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "storage": {
            "data_dir": settings.data_dir,
            "fallback_data_dir": settings.fallback_data_dir,
            "max_upload_mb": settings.max_upload_mb,
        },
        "llm": llm_overrides,
        "retrieval": retrieval_overrides,
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def resolve_data_dir(settings: Settings) -> Path:
    """Choose the storage root and make sure ``uploads/`` exists beneath it.

    The primary ``data_dir`` wins when it exists and is writable, or when
    its parent is writable so it can be created.  Otherwise the fallback
    directory is used.

    Raises:
        ConfigurationError: If neither root can be created.
    """
    primary = Path(settings.data_dir)
    candidates = [primary, Path(settings.fallback_data_dir)]
    if _is_usable(primary):
        chosen_from = candidates
    else:
        logger.warning("data_dir_unwritable", data_dir=str(primary), fallback=settings.fallback_data_dir)
        chosen_from = candidates[1:]

    for root in chosen_from:
        try:
            (root / "uploads").mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.warning("data_dir_create_failed", data_dir=str(root), error=str(exc))
            continue
        logger.info("data_dir_selected", data_dir=str(root))
        return root

    raise ConfigurationError(
        message=f"No writable storage root among {[str(c) for c in candidates]}",
        provider_name="config",
    )


def _is_usable(root: Path) -> bool:
    if root.exists():
        return root.is_dir() and os.access(root, os.W_OK)
    return root.parent.exists() and os.access(root.parent, os.W_OK)


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value

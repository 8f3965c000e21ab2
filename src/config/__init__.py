"""Configuration module — exports Settings, load_config and resolve_data_dir."""

from src.config.loader import load_config, resolve_data_dir
from src.config.settings import Settings

__all__ = ["Settings", "load_config", "resolve_data_dir"]

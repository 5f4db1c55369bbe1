"""Layered configuration (YAML, .env, PEMS_* environment variables)."""

from .loader import ConfigLoader, PEMSSettings, get_config_loader, load_config, load_settings

__all__ = ["ConfigLoader", "PEMSSettings", "get_config_loader", "load_config", "load_settings"]

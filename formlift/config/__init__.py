"""
Configuration module for FormLift
"""

from formlift.config.config import Config, DefaultConfig, get_config, reload_config

__all__ = ["Config", "DefaultConfig", "get_config", "reload_config"]

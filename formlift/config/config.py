"""
Configuration module for FormLift
Supports configuration through environment variables and a .env file
"""

import os
import threading
from typing import Optional
from pathlib import Path

from dotenv import load_dotenv


class DefaultConfig:
    """Default configuration values"""
    # Expression analysis
    COMPLEXITY_THRESHOLD = 5
    MAX_DECOMPOSITION_DEPTH = 32
    LEGACY_OPERATOR_ORDER = True  # Keep the historical operator wording in paraphrases

    # Control group mining
    GROUP_SIMILARITY_THRESHOLD = 0.8
    LABEL_SIMILARITY_THRESHOLD = 0.7
    MIN_OCCURRENCES = 2
    MIN_GROUP_SIZE = 2
    MAX_GROUP_SIZE = 10

    # Paths
    OUTPUT_DIR = './output'
    FORMS_DIR = './forms'

    # Logging
    LOG_LEVEL = 'INFO'
    LOG_DIR = './logs'
    AUTO_LOG_ENABLED = True


class Config:
    """
    FormLift settings (thread-safe singleton)

    Usage:
        config = Config.get_instance()
        # or
        config = get_config()

    Engines never read this object; callers pass the values they need.
    """

    _instance: Optional['Config'] = None
    _lock: threading.Lock = threading.Lock()
    _initialized: bool = False

    def __new__(cls) -> 'Config':
        if cls._instance is None:
            with cls._lock:
                # Double-check locking
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        """Load settings once; later constructions return the loaded instance"""
        if Config._initialized:
            return

        with Config._lock:
            if Config._initialized:
                return

            base_path = Path(__file__).parent.parent.parent
            # .env first, then environment.env
            env_path = base_path / '.env'
            if not env_path.exists():
                env_path = base_path / 'environment.env'

            if env_path.exists():
                load_dotenv(env_path)
                self._env_loaded = True
            else:
                self._env_loaded = False

            # Expression analysis
            self.complexity_threshold = self._getenv_int('FORMLIFT_COMPLEXITY_THRESHOLD',
                                                         DefaultConfig.COMPLEXITY_THRESHOLD)
            self.max_decomposition_depth = self._getenv_int('FORMLIFT_MAX_DECOMPOSITION_DEPTH',
                                                            DefaultConfig.MAX_DECOMPOSITION_DEPTH)
            self.legacy_operator_order = self._getenv_bool('FORMLIFT_LEGACY_OPERATOR_ORDER',
                                                           DefaultConfig.LEGACY_OPERATOR_ORDER)

            # Control group mining
            self.group_similarity_threshold = self._getenv_float('FORMLIFT_GROUP_SIMILARITY_THRESHOLD',
                                                                 DefaultConfig.GROUP_SIMILARITY_THRESHOLD)
            self.label_similarity_threshold = self._getenv_float('FORMLIFT_LABEL_SIMILARITY_THRESHOLD',
                                                                 DefaultConfig.LABEL_SIMILARITY_THRESHOLD)
            self.min_occurrences = self._getenv_int('FORMLIFT_MIN_OCCURRENCES', DefaultConfig.MIN_OCCURRENCES)
            self.min_group_size = self._getenv_int('FORMLIFT_MIN_GROUP_SIZE', DefaultConfig.MIN_GROUP_SIZE)
            self.max_group_size = self._getenv_int('FORMLIFT_MAX_GROUP_SIZE', DefaultConfig.MAX_GROUP_SIZE)

            # Paths
            self.output_dir = os.getenv('FORMLIFT_OUTPUT_DIR', DefaultConfig.OUTPUT_DIR)
            self.forms_dir = os.getenv('FORMLIFT_FORMS_DIR', DefaultConfig.FORMS_DIR)

            # Logging
            self.log_level = os.getenv('FORMLIFT_LOG_LEVEL', DefaultConfig.LOG_LEVEL)
            self.log_file = os.getenv('FORMLIFT_LOG_FILE')  # Optional
            self.log_dir = os.getenv('FORMLIFT_LOG_DIR', DefaultConfig.LOG_DIR)
            self.auto_log_enabled = self._getenv_bool('FORMLIFT_AUTO_LOG_ENABLED', DefaultConfig.AUTO_LOG_ENABLED)

            self._validate()

            Config._initialized = True

    @classmethod
    def get_instance(cls) -> 'Config':
        """
        Singleton configuration instance (preferred accessor)

        Returns:
            The single Config instance
        """
        return cls()

    @classmethod
    def reset_instance(cls) -> None:
        """
        Drop the singleton so the next access reloads the environment

        WARNING: meant for tests.
        """
        with cls._lock:
            cls._instance = None
            cls._initialized = False

    @staticmethod
    def _getenv_int(key: str, default: int) -> int:
        """Environment variable as int"""
        try:
            return int(os.getenv(key, str(default)))
        except ValueError:
            return default

    @staticmethod
    def _getenv_float(key: str, default: float) -> float:
        """Environment variable as float"""
        try:
            return float(os.getenv(key, str(default)))
        except ValueError:
            return default

    @staticmethod
    def _getenv_bool(key: str, default: bool = False) -> bool:
        """Environment variable as bool"""
        value = os.getenv(key, '').lower()
        if not value:
            return default
        return value in ('true', '1', 'yes', 'on')

    def _validate(self) -> None:
        """Validate settings"""
        if self.complexity_threshold < 0:
            raise ValueError("Complexity threshold must not be negative")

        if self.max_decomposition_depth < 0:
            raise ValueError("Max decomposition depth must not be negative")

        if not 0 <= self.group_similarity_threshold <= 1:
            raise ValueError("Group similarity threshold must be between 0 and 1")

        if not 0 <= self.label_similarity_threshold <= 1:
            raise ValueError("Label similarity threshold must be between 0 and 1")

        if self.min_occurrences < 1:
            raise ValueError("Min occurrences must be at least 1")

        if self.min_group_size < 1:
            raise ValueError("Min group size must be at least 1")

        if self.min_group_size > self.max_group_size:
            raise ValueError("Min group size must not exceed max group size")

    def __repr__(self) -> str:
        return (f"Config(complexity_threshold={self.complexity_threshold}, "
                f"group_similarity_threshold={self.group_similarity_threshold}, "
                f"output_dir={self.output_dir}, env_loaded={self._env_loaded})")


def get_config() -> Config:
    """
    Singleton configuration instance (helper)

    Returns:
        The single Config instance
    """
    return Config.get_instance()


def reload_config() -> Config:
    """
    Reload configuration

    Resets the singleton and builds a new one, re-reading the environment.

    Returns:
        New Config instance
    """
    Config.reset_instance()
    return Config.get_instance()

"""Configuration management for ffharness.

Configuration is loaded with precedence handling:
1. CLI flags (highest priority)
2. Environment variables (FFHARNESS_*)
3. Config file (~/.ffharness/config.toml)
4. Default values (lowest priority)
"""

from ffharness.config.builder import (
    ConfigBuilder,
    ConfigSource,
    source_from_env,
    source_from_file,
)
from ffharness.config.env import EnvReader
from ffharness.config.loader import (
    ConfigFileError,
    clear_config_cache,
    get_config,
    get_default_config_path,
    load_config_file,
)
from ffharness.config.models import (
    SUPPORTED_FORMATS,
    ExtractionConfig,
    HarnessConfig,
    LoggingConfig,
    SelfTestConfig,
    ToolPathsConfig,
)

__all__ = [
    # Models
    "SUPPORTED_FORMATS",
    "ExtractionConfig",
    "HarnessConfig",
    "LoggingConfig",
    "SelfTestConfig",
    "ToolPathsConfig",
    # Loader
    "ConfigFileError",
    "clear_config_cache",
    "get_config",
    "get_default_config_path",
    "load_config_file",
    # Layering
    "ConfigBuilder",
    "ConfigSource",
    "EnvReader",
    "source_from_env",
    "source_from_file",
]

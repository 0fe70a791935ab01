"""Configuration utilities for playoutgraph."""

from .io import load_config, load_playout_config
from .merge import merge_configs
from .model import (
    AdvancedConfig,
    DecoderConfig,
    FilterTemplates,
    GeneralConfig,
    IngestConfig,
    LoggingConfig,
    OutputConfig,
    OutputMode,
    PlayoutConfig,
    ProcessingConfig,
    TextConfig,
)
from .validate import validate_config

__all__ = [
    "load_config",
    "load_playout_config",
    "merge_configs",
    "validate_config",
    "AdvancedConfig",
    "DecoderConfig",
    "FilterTemplates",
    "GeneralConfig",
    "IngestConfig",
    "LoggingConfig",
    "OutputConfig",
    "OutputMode",
    "PlayoutConfig",
    "ProcessingConfig",
    "TextConfig",
]

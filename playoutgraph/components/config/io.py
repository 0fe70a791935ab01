from typing import Any, Dict, Optional, Sequence

import yaml
from yaml import YAMLError

from ...exceptions import ValidationError
from .merge import merge_configs
from .model import PlayoutConfig
from .validate import validate_config


def load_config(config_path: str) -> Dict[str, Any]:
    """Load a YAML configuration file with friendly validation errors.

    Parameters
    ----------
    config_path: str
        Path to a YAML file (UTF-8).

    Returns
    -------
    Dict[str, Any]
        The parsed mapping. An empty file yields an empty dict.

    Raises
    ------
    ValidationError
        When the file is not found, the YAML syntax is invalid, or the top
        level is not a mapping.
    """
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except YAMLError as e:
        mark = getattr(e, "problem_mark", None) or getattr(e, "context_mark", None)
        line = mark.line + 1 if mark else None
        column = mark.column + 1 if mark else None
        raise ValidationError(
            f"Invalid YAML syntax in {config_path}: {e}",
            line_number=line,
            column_number=column,
        )
    except FileNotFoundError:
        raise ValidationError(f"Configuration file not found: {config_path}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError(f"Configuration root in {config_path} must be a mapping.")
    return data


def load_playout_config(
    config_path: str, overrides: Optional[Sequence[str]] = None
) -> PlayoutConfig:
    """Load, merge, validate and convert channel configuration files.

    Later files in ``overrides`` take precedence over earlier ones.
    """
    merged = load_config(config_path)
    for path in overrides or ():
        merged = merge_configs(merged, load_config(path))

    validate_config(merged)
    return PlayoutConfig.from_dict(merged)

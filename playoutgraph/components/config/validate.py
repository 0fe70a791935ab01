import re
from typing import Any, Dict

from ...exceptions import ValidationError
from .model import FilterTemplates, OutputMode

OUTPUT_MODE_CHOICES = {m.value for m in OutputMode}
LOG_LEVEL_CHOICES = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

SECTIONS = ("general", "processing", "ingest", "text", "output", "advanced", "logging")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _section(config: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = config.get(name)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ValidationError(f"'{name}' section must be a dictionary.")
    return section


def _check_bool(section: Dict[str, Any], prefix: str, key: str) -> None:
    val = section.get(key)
    if val is not None and not isinstance(val, bool):
        raise ValidationError(f"'{prefix}.{key}' must be a boolean.")


def _check_str(section: Dict[str, Any], prefix: str, key: str) -> None:
    val = section.get(key)
    if val is not None and not isinstance(val, str):
        raise ValidationError(f"'{prefix}.{key}' must be a string.")


def _validate_processing(processing: Dict[str, Any]) -> None:
    for key in ("audio_only", "copy_audio", "copy_video", "add_logo"):
        _check_bool(processing, "processing", key)
    for key in ("logo_path", "logo_scale", "logo_position", "custom_filter"):
        _check_str(processing, "processing", key)

    for key in ("width", "height", "fps", "aspect"):
        val = processing.get(key)
        if val is None:
            continue
        if not _is_number(val) or val <= 0:
            raise ValidationError(f"'processing.{key}' must be a positive number.")

    volume = processing.get("volume")
    if volume is not None and (not _is_number(volume) or volume < 0):
        raise ValidationError("'processing.volume' must be a non-negative number.")

    opacity = processing.get("logo_opacity")
    if opacity is not None and (not _is_number(opacity) or not (0.0 <= opacity <= 1.0)):
        raise ValidationError("'processing.logo_opacity' must be between 0.0 and 1.0.")

    tracks = processing.get("audio_tracks")
    if tracks is not None and (not isinstance(tracks, int) or isinstance(tracks, bool) or tracks < 1):
        raise ValidationError("'processing.audio_tracks' must be a positive integer.")

    index = processing.get("audio_track_index")
    if index is not None and (not isinstance(index, int) or isinstance(index, bool) or index < -1):
        raise ValidationError("'processing.audio_track_index' must be -1 or a track index.")

    channels = processing.get("audio_channels")
    if channels is not None and (not isinstance(channels, int) or isinstance(channels, bool) or channels < 1):
        raise ValidationError("'processing.audio_channels' must be a positive integer.")


def _validate_text(text: Dict[str, Any]) -> None:
    for key in ("add_text", "text_from_filename"):
        _check_bool(text, "text", key)
    for key in ("fontfile", "style", "zmq_stream_socket", "zmq_server_socket"):
        _check_str(text, "text", key)

    regex = text.get("regex")
    if regex is not None:
        if not isinstance(regex, str):
            raise ValidationError("'text.regex' must be a string.")
        try:
            re.compile(regex)
        except re.error as e:
            raise ValidationError(f"'text.regex' is not a valid regular expression: {e}")


def _validate_output(output: Dict[str, Any]) -> None:
    mode = output.get("mode")
    if mode is not None and (not isinstance(mode, str) or mode.lower() not in OUTPUT_MODE_CHOICES):
        raise ValidationError(
            f"'output.mode' must be one of {sorted(OUTPUT_MODE_CHOICES)}."
        )

    count = output.get("output_count")
    if count is not None and (not isinstance(count, int) or isinstance(count, bool) or count < 1):
        raise ValidationError("'output.output_count' must be a positive integer.")

    _check_str(output, "output", "output_filter")


def _validate_advanced(advanced: Dict[str, Any]) -> None:
    decoder = advanced.get("decoder")
    if decoder is not None:
        if not isinstance(decoder, dict):
            raise ValidationError("'advanced.decoder' must be a dictionary.")
        _check_str(decoder, "advanced.decoder", "input_param")

    filters = advanced.get("filter")
    if filters is None:
        return
    if not isinstance(filters, dict):
        raise ValidationError("'advanced.filter' must be a dictionary.")

    known = set(FilterTemplates.__dataclass_fields__)
    for key, val in filters.items():
        if key not in known:
            raise ValidationError(f"Unknown filter template 'advanced.filter.{key}'.")
        if val is not None and not isinstance(val, str):
            raise ValidationError(f"'advanced.filter.{key}' must be a string.")


def _validate_logging(log_cfg: Dict[str, Any]) -> None:
    level = log_cfg.get("level")
    if level is not None and (not isinstance(level, str) or level.upper() not in LOG_LEVEL_CHOICES):
        raise ValidationError(f"'logging.level' must be one of {sorted(LOG_LEVEL_CHOICES)}.")
    for key in ("log_json", "log_kv"):
        _check_bool(log_cfg, "logging", key)
    _check_str(log_cfg, "logging", "path")


def validate_config(config: Dict[str, Any]) -> None:
    """Validate a loaded channel configuration mapping.

    Raises
    ------
    ValidationError
        If a section has the wrong shape or a value is out of range.
    """
    if not isinstance(config, dict):
        raise ValidationError("Configuration must be a dictionary.")

    for name in SECTIONS:
        _section(config, name)

    general = _section(config, "general")
    channel_id = general.get("channel_id")
    if channel_id is not None and (not isinstance(channel_id, int) or isinstance(channel_id, bool)):
        raise ValidationError("'general.channel_id' must be an integer.")

    _validate_processing(_section(config, "processing"))

    ingest = _section(config, "ingest")
    _check_bool(ingest, "ingest", "enable")
    _check_str(ingest, "ingest", "custom_filter")

    _validate_text(_section(config, "text"))
    _validate_output(_section(config, "output"))
    _validate_advanced(_section(config, "advanced"))
    _validate_logging(_section(config, "logging"))

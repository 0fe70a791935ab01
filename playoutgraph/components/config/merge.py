from typing import Any, Dict


def merge_configs(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge two channel configurations where ``override`` wins.

    Nested sections are deep-merged. A section left empty in the override
    (``processing:`` with no keys loads as ``None``) keeps the base section.
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict):
            if isinstance(value, dict):
                merged[key] = merge_configs(current, value)
                continue
            if value is None:
                continue
        merged[key] = value
    return merged

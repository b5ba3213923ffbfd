from __future__ import annotations

import json
import os
from typing import Any


# [UTILITY FUNCTIONS]
###############################################################################
def ensure_mapping(value: Any) -> dict[str, Any]:
    if isinstance(value, dict):
        return value
    return {}

# -----------------------------------------------------------------------------
def load_configuration_data(path: str) -> dict[str, Any]:
    if not os.path.exists(path):
        raise RuntimeError(f"Configuration file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = json.load(handle)
    except (OSError, json.JSONDecodeError) as exc:
        raise RuntimeError(f"Unable to load configuration from {path}") from exc
    if not isinstance(data, dict):
        raise RuntimeError("Configuration root must be a JSON object.")
    return data

# -----------------------------------------------------------------------------
def merge_environment_overrides(
    payload: dict[str, Any], overrides: dict[str, str], mapping: dict[str, str]
) -> dict[str, Any]:
    merged = dict(payload)
    for env_key, field_name in mapping.items():
        if env_key in overrides:
            merged[field_name] = overrides[env_key]
    return merged

from __future__ import annotations

import json
import os
from typing import Any

from LINEDASH.app.constants import (
    CONFIG_PATH,
    DEFAULT_API_URL,
    DEFAULT_ROW_LIMIT,
    DEFAULT_TABLE,
    MAX_ROW_LIMIT,
    MIN_SAVING_VISIBLE,
    REQUEST_TIMEOUT,
    SAVED_VISIBLE,
    SAVING_DELAY,
)


###############################################################################
class Configuration:
    def __init__(self) -> None:
        self.configuration = {
            # API
            "api_url": DEFAULT_API_URL,
            "request_timeout": REQUEST_TIMEOUT,
            # Table browser
            "default_table": DEFAULT_TABLE,
            "default_limit": DEFAULT_ROW_LIMIT,
            "max_limit": MAX_ROW_LIMIT,
            # Save indicators
            "saving_delay": SAVING_DELAY,
            "min_saving_visible": MIN_SAVING_VISIBLE,
            "saved_visible": SAVED_VISIBLE,
        }

    # -------------------------------------------------------------------------
    def get_configuration(self) -> dict[str, Any]:
        return self.configuration

    # -------------------------------------------------------------------------
    def get_value(self, key: str) -> Any:
        return self.configuration[key]

    # -------------------------------------------------------------------------
    def update_value(self, key: str, value: Any) -> None:
        if key not in self.configuration:
            raise KeyError(f"Unknown configuration key: {key}")
        self.configuration[key] = value

    # -------------------------------------------------------------------------
    def save_configuration_to_json(self, name: str, path: str = CONFIG_PATH) -> str:
        os.makedirs(path, exist_ok=True)
        full_path = os.path.join(path, f"{name}.json")
        with open(full_path, "w") as f:
            json.dump(self.configuration, f, indent=4)
        return full_path

    # -------------------------------------------------------------------------
    def load_configuration_from_json(self, name: str, path: str = CONFIG_PATH) -> None:
        filename = name if name.endswith(".json") else f"{name}.json"
        full_path = os.path.join(path, filename)
        with open(full_path) as f:
            payload = json.load(f)
        if not isinstance(payload, dict):
            raise ValueError(f"Configuration file must contain a JSON object: {full_path}")
        # keys missing from the file keep their defaults
        self.configuration.update(
            {key: value for key, value in payload.items() if key in self.configuration}
        )

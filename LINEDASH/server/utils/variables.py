from __future__ import annotations

import os

from dotenv import load_dotenv

from LINEDASH.server.utils.constants import ENV_FILE_PATH
from LINEDASH.server.utils.logger import logger


# [LOAD ENVIRONMENT VARIABLES]
###############################################################################
class EnvironmentVariables:
    def __init__(self, env_path: str = ENV_FILE_PATH) -> None:
        self.env_path = env_path
        if os.path.exists(self.env_path):
            load_dotenv(dotenv_path=self.env_path, override=False)
        else:
            logger.info(".env file not found at %s, using process environment", self.env_path)

    # -------------------------------------------------------------------------
    def get(self, key: str, default: str | None = None) -> str | None:
        value = os.getenv(key)
        if value is None or not value.strip():
            return default
        return value

    # -------------------------------------------------------------------------
    def snapshot(self, keys: tuple[str, ...]) -> dict[str, str]:
        values: dict[str, str] = {}
        for key in keys:
            value = self.get(key)
            if value is not None:
                values[key] = value
        return values


env_variables = EnvironmentVariables()

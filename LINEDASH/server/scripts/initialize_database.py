from __future__ import annotations

import argparse
import json
import time

from LINEDASH.server.configurations import get_server_settings
from LINEDASH.server.database.initializer import initialize_database
from LINEDASH.server.utils.logger import logger


# -----------------------------------------------------------------------------
def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Create the LINEDASH database and its primary dataset table."
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to an alternative server_configurations.json file.",
    )
    parser.add_argument(
        "--seed",
        action="store_true",
        help="Insert demo rows for two production lines after creating the schema.",
    )
    return parser.parse_args(argv)


# -----------------------------------------------------------------------------
def main(argv: list[str] | None = None) -> None:
    arguments = parse_arguments(argv)
    settings = get_server_settings(arguments.config)
    database_settings = settings.database
    redacted = {
        "embedded_database": database_settings.embedded_database,
        "engine": database_settings.engine,
        "host": database_settings.host,
        "port": database_settings.port,
        "database_name": database_settings.database_name,
    }

    start = time.perf_counter()
    logger.info("Starting database initialization")
    logger.info("Current database configuration: %s", json.dumps(redacted))
    initialize_database(database_settings, seed=arguments.seed)
    elapsed = time.perf_counter() - start
    logger.info("Database initialization completed in %.2f seconds", elapsed)


###############################################################################
if __name__ == "__main__":
    main()

from __future__ import annotations

from os.path import abspath, join

# [PATHS]
###############################################################################
ROOT_DIR = abspath(join(__file__, "../../../.."))
PROJECT_DIR = join(ROOT_DIR, "LINEDASH")
SETTING_PATH = join(PROJECT_DIR, "settings")
RESOURCES_PATH = join(PROJECT_DIR, "resources")
DATA_PATH = join(RESOURCES_PATH, "database")
LOGS_PATH = join(RESOURCES_PATH, "logs")
ENV_FILE_PATH = join(SETTING_PATH, ".env")
DATABASE_FILENAME = "sqlite.db"

###############################################################################
SERVER_CONFIGURATION_FILE = join(SETTING_PATH, "server_configurations.json")

# [DATABASE TABLES]
###############################################################################
PRIMARY_TABLE = "drone_sop_v3"

# [DATABASE COLUMNS]
###############################################################################
ID_COLUMN = "id"
CREATED_AT_COLUMN = "created_at"
LINE_ID_COLUMN = "line_id"
COMMENT_COLUMN = "comment"
NEEDTOSEND_COLUMN = "needtosend"

# [TABLE BROWSER]
###############################################################################
IDENTIFIER_PART_PATTERN = r"^[A-Za-z0-9_]+$"
SYSTEM_SCHEMAS = (
    "information_schema",
    "mysql",
    "performance_schema",
    "sys",
    "pg_catalog",
    "pg_toast",
)
DEFAULT_ROW_LIMIT = 200
MAX_ROW_LIMIT = 1000
DEFAULT_SINCE_DAYS = 3

# signed 64-bit integer column range
MIN_ROW_ID = -(2**63)
MAX_ROW_ID = 2**63 - 1

# [LINE DASHBOARD]
###############################################################################
COMPLETED_STATUS = "Completed"
TREND_LOOKBACK_DAYS = 90
RECENT_ITEMS_LIMIT = 10

# [ENVIRONMENT DEFAULTS]
###############################################################################
DEFAULT_DB_HOST = "127.0.0.1"
DEFAULT_DB_PORT = 3307
DEFAULT_DB_USER = "drone_user"
DEFAULT_DB_PASSWORD = "dronepwd"
DEFAULT_DB_NAME = "drone_sop"

from os.path import abspath, join

# [PATHS]
###############################################################################
ROOT_DIR = abspath(join(__file__, "../../.."))
PROJECT_DIR = join(ROOT_DIR, "LINEDASH")
SETTING_PATH = join(PROJECT_DIR, "settings")
CONFIG_PATH = join(SETTING_PATH, "client")

# [API]
###############################################################################
DEFAULT_API_URL = "http://127.0.0.1:8000"
REQUEST_TIMEOUT = 10.0

# [TABLE BROWSER]
###############################################################################
DEFAULT_TABLE = "drone_sop_v3"
DEFAULT_ROW_LIMIT = 200
MAX_ROW_LIMIT = 1000
ID_FIELD = "id"
COMMENT_FIELD = "comment"
NEEDTOSEND_FIELD = "needtosend"
EDITABLE_FIELDS = (COMMENT_FIELD, NEEDTOSEND_FIELD)

# [SAVE INDICATOR TIMINGS, seconds]
###############################################################################
SAVING_DELAY = 0.18
MIN_SAVING_VISIBLE = 0.5
SAVED_VISIBLE = 0.8

# [CELL RENDERING]
###############################################################################
NULL_MARKER = "NULL"
LONG_TEXT_THRESHOLD = 120
STEP_FLOW_COLUMN_ID = "metro_step_flow"
STEP_COLUMN_KEYS = (
    "main_step",
    "metro_steps",
    "metro_current_step",
    "metro_end_step",
    "custom_end_step",
    "inform_step",
)
MAIN_COMPLETE_STATUS = "MAIN_COMPLETE"

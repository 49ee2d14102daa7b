"""
Application constants
"""

# Local storage slots (mirror the browser localStorage keys of the web client)
GUEST_TODOS_KEY = "todoflow_guest_todos"
SESSION_TOKEN_KEY = "todoflow_token"
SESSION_USER_KEY = "todoflow_user"
SESSION_GUEST_KEY = "todoflow_guest"

# Guest ids: guest_<epoch ms>_<suffix>
GUEST_ID_PREFIX = "guest"
GUEST_ID_SUFFIX_LENGTH = 9

# Remote API
REMOTE_REST_PATH = "/rest/v1"
REMOTE_AUTH_PATH = "/auth/v1"
REMOTE_TODOS_TABLE = "todos"

# Ordering
PRIORITY_ORDER = {"high": 3, "medium": 2, "low": 1}

# Stats
UNCATEGORIZED_LABEL = "Uncategorized"
UNCATEGORIZED_COLOR = "#6B7280"
OVERDUE_SCORE_PENALTY = 10  # points per overdue active task

# Logging
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

"""
Shared constants and time helpers
"""
from datetime import datetime, timezone


# Version written into every stored submission snapshot
HISTORY_SCHEMA_VERSION = 1

# Progress bounds (percent)
PROGRESS_MIN = 0
PROGRESS_MAX = 100

# Material-to-material hierarchy traversal
DEFAULT_HIERARCHY_MAX_DEPTH = 5

# AI assistant processing states
AI_ASSISTANT_STATUSES = ("ready", "process", "notready")


def utc_now() -> datetime:
    """Timezone-aware UTC timestamp"""
    return datetime.now(timezone.utc)

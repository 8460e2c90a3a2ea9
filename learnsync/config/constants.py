"""
Centralized constants for learnsync.

Collection names, backup keys, corruption thresholds and benchmark targets
live here so the services and the CLI agree on them.
"""

from pathlib import Path

# =============================================================================
# COLLECTIONS
# =============================================================================

PROGRESS_COLLECTION = "progress"
DASHBOARD_FIGURES_COLLECTION = "dashboardFigures"
NOTES_COLLECTION = "notes"
PLANNERS_COLLECTION = "planners"
AUDIT_LOGS_COLLECTION = "auditLogs"

# Collections the recovery coordinator knows how to reconcile, in load order
KNOWN_COLLECTIONS: tuple[str, ...] = (
    PROGRESS_COLLECTION,
    DASHBOARD_FIGURES_COLLECTION,
    NOTES_COLLECTION,
    PLANNERS_COLLECTION,
    AUDIT_LOGS_COLLECTION,
)

# =============================================================================
# BACKUP KEYS
# =============================================================================

DEFAULT_APP_PREFIX = "learning_portal"
BACKUP_KEY_SUFFIX = "_backup"
BACKUP_META_SUFFIX = "_meta"

# Auto-backup interval (seconds)
AUTO_BACKUP_INTERVAL_SECONDS = 5 * 60

# =============================================================================
# DERIVED METRICS
# =============================================================================

EFFICIENCY_METRIC_ID = "efficiency_ratio"
EFFICIENCY_CORRUPTION_THRESHOLD = 1000  # values above this are corrupt
EFFICIENCY_SAFE_DEFAULT = 0

# =============================================================================
# BENCHMARK TARGETS (milliseconds)
# =============================================================================

DEFAULT_BENCHMARK_ITERATIONS = 10
LESSON_TOGGLE_TARGET_MS = 50.0
FRAME_BUDGET_MS = 1000.0 / 60  # 60fps

# =============================================================================
# PATHS & ENVIRONMENT
# =============================================================================

LEARNSYNC_CONFIG_DIR = Path.home() / ".config" / "learnsync"
DEFAULT_DATA_DIR = LEARNSYNC_CONFIG_DIR / "data"
DEFAULT_BLOB_DIR_NAME = "blobs"

ENV_DATA_DIR = "LEARNSYNC_DATA_DIR"
ENV_REMOTE_DIR = "LEARNSYNC_REMOTE_DIR"
ENV_USER = "LEARNSYNC_USER"
ENV_BACKUP_INTERVAL = "LEARNSYNC_BACKUP_INTERVAL"

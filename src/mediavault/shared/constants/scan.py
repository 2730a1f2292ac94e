"""
Scan Pipeline Constants

Tuning values for the library scan pipeline. Every value here is a default
that the scan settings section can override.
"""

from __future__ import annotations


class ScanDefaults:
    """Default tuning values for a library scan."""

    BATCH_SIZE = 200
    DELETE_CHUNK_SIZE = 2000
    PRUNE_INTERVAL = 5000
    GC_INTERVAL = 10000
    CHECKPOINT_ITEM_THRESHOLD = 500
    CHECKPOINT_INTERVAL_SECONDS = 30.0
    PREFETCH_QUEUE_SIZE = 1000
    QUEUE_POLL_TIMEOUT = 0.5
    MTIME_TOLERANCE = 0.001
    HISTORY_LIMIT = 50


class PipelineStages:
    """Stage names, also used as checkpoint stage tags."""

    DIRECTORY_TRAVERSAL = "directory_traversal"
    CHANGE_DETECTION = "change_detection"
    RESOLVE_ITEMS = "resolve_items"
    LOCAL_METADATA = "local_metadata"
    PREFETCH = "prefetch"


class CheckpointConfig:
    """Checkpoint format versions."""

    TRAVERSAL_VERSION = 1


class ScanLogMessages:
    """Operation names used in structured log records."""

    EXECUTE_SCAN = "execute_scan"
    START_SCAN = "start_scan"
    RESUME_SCAN = "resume_scan"
    CANCEL_SCAN = "cancel_scan"
    RECONCILE = "reconcile_deletions"
    FLUSH_BATCH = "flush_batch"
    CHECKPOINT = "save_checkpoint"
    RECOVER = "recover_interrupted_scans"

from .cleanup import fail_stale_jobs
from .jobs import process_batch

__all__ = [
    "process_batch",
    "fail_stale_jobs",
]

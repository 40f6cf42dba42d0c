"""Sequential batch processing.

Items run strictly one after another through a single orchestrator. A failing
item is recorded and the loop moves on. Batch progress is never cached: it is
re-derived from the batch's job logs plus the errors of items that were
rejected before a log existed.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from django.db.models import Max
from django.utils import timezone

from roomlift.models import EnhancementLog, JobBatch
from roomlift.utils.exceptions import JobError

logger = logging.getLogger(__name__)

ITEM_PENDING = EnhancementLog.STATUS_PENDING
ITEM_PROCESSING = EnhancementLog.STATUS_PROCESSING
ITEM_COMPLETED = EnhancementLog.STATUS_COMPLETED
ITEM_FAILED = EnhancementLog.STATUS_FAILED

INTERRUPTED_ERROR = {
    "code": "BATCH_INTERRUPTED",
    "message": "Batch stopped before this image was processed",
    "details": {},
}


@dataclass
class BatchItem:
    image_id: int
    status: str = ITEM_PENDING
    log_id: Optional[int] = None
    result_url: Optional[str] = None
    error: Optional[Dict[str, Any]] = field(default=None)


def unique_image_ids(image_ids) -> List[int]:
    """Collapse duplicate ids, keeping the first occurrence"""
    seen = set()
    ordered = []
    for image_id in image_ids:
        if image_id in seen:
            continue
        seen.add(image_id)
        ordered.append(image_id)
    return ordered


def derive_batch_items(batch) -> List[BatchItem]:
    """Rebuild per-item status from what the database says right now"""
    latest = {}
    for log in batch.logs.order_by("created_at", "id"):
        latest[log.image_id] = log

    items = []
    for image_id in unique_image_ids(batch.image_ids):
        log = latest.get(image_id)
        if log is not None:
            error = None
            if log.status == EnhancementLog.STATUS_FAILED:
                error = {"code": "JOB_FAILED", "message": log.error_message}
            items.append(
                BatchItem(
                    image_id=image_id,
                    status=log.status,
                    log_id=log.id,
                    result_url=log.result_url,
                    error=error,
                )
            )
            continue

        rejection = (batch.item_errors or {}).get(str(image_id))
        if rejection:
            items.append(BatchItem(image_id=image_id, status=ITEM_FAILED, error=rejection))
        else:
            items.append(BatchItem(image_id=image_id))
    return items


def summarize(items) -> Dict[str, int]:
    counts = {
        "total": len(items),
        ITEM_PENDING: 0,
        ITEM_PROCESSING: 0,
        ITEM_COMPLETED: 0,
        ITEM_FAILED: 0,
    }
    for item in items:
        counts[item.status] += 1
    return counts


class BatchSequencer:
    """
    Run one orchestrator over several images in order

    Usage:
        sequencer = BatchSequencer(JobOrchestrator(ENHANCEMENT), user)
        sequencer.run([4, 8, 15])
        sequencer.completed_count, sequencer.failed_count
    """

    def __init__(self, orchestrator, user):
        self.orchestrator = orchestrator
        self.user = user
        self.items: List[BatchItem] = []

    @property
    def total(self) -> int:
        return len(self.items)

    @property
    def completed_count(self) -> int:
        return sum(1 for item in self.items if item.status == ITEM_COMPLETED)

    @property
    def failed_count(self) -> int:
        return sum(1 for item in self.items if item.status == ITEM_FAILED)

    def run(self, image_ids, model_id=None, prompt_override=None, batch=None) -> List[BatchItem]:
        for image_id in unique_image_ids(image_ids):
            item = BatchItem(image_id=image_id, status=ITEM_PROCESSING)
            self.items.append(item)
            self._run_item(item, model_id, prompt_override, batch)

        logger.info(
            f"Batch {getattr(batch, 'id', '-')} finished: {self.completed_count} completed, "
            f"{self.failed_count} failed of {self.total}"
        )
        return self.items

    def _run_item(self, item, model_id, prompt_override, batch):
        try:
            result = self.orchestrator.run(
                self.user,
                item.image_id,
                model_id=model_id,
                prompt_override=prompt_override,
                batch=batch,
            )
        except JobError as exc:
            item.status = ITEM_FAILED
            item.error = {"code": exc.code.upper(), "message": str(exc), "details": exc.details}
            logger.warning(f"Batch item {item.image_id} failed: {exc}")
        except Exception as exc:
            item.status = ITEM_FAILED
            item.error = {"code": "PROCESSING_ERROR", "message": str(exc) or type(exc).__name__, "details": {}}
            logger.exception(f"Unexpected error in batch item {item.image_id}")
        else:
            item.status = ITEM_COMPLETED
            item.log_id = result.log.id
            item.result_url = result.result_url
            return

        if batch is not None and not batch.logs.filter(image_id=item.image_id).exists():
            self._record_rejection(batch, item)

    @staticmethod
    def _record_rejection(batch, item):
        errors = dict(batch.item_errors or {})
        errors[str(item.image_id)] = item.error
        batch.item_errors = errors
        batch.save(update_fields=["item_errors"])


def last_activity(batch):
    """Most recent moment the batch or one of its jobs started"""
    latest_job = batch.logs.aggregate(started=Max("started_at"))["started"]
    moments = [batch.started_at, latest_job]
    return max((moment for moment in moments if moment), default=batch.created_at)


def close_stalled_batch(batch, cutoff) -> bool:
    """
    Finish a running batch whose worker has been silent since `cutoff`.

    Items that never started are failed through `item_errors`; nothing is
    re-run. A batch with an item still processing is left for the stale-job
    sweep to settle first.
    """
    if batch.status != JobBatch.STATUS_RUNNING or last_activity(batch) >= cutoff:
        return False

    items = derive_batch_items(batch)
    if any(item.status == ITEM_PROCESSING for item in items):
        return False

    errors = dict(batch.item_errors or {})
    for item in items:
        if item.status == ITEM_PENDING:
            errors[str(item.image_id)] = dict(INTERRUPTED_ERROR)

    closed = JobBatch.objects.filter(
        pk=batch.pk,
        status=JobBatch.STATUS_RUNNING,
    ).update(
        status=JobBatch.STATUS_FINISHED,
        finished_at=timezone.now(),
        item_errors=errors,
    )
    if closed:
        logger.warning(f"Closed stalled batch {batch.pk}")
    return bool(closed)

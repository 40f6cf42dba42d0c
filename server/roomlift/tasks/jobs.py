from celery import shared_task
from django.utils import timezone
from roomlift.models import JobBatch
from roomlift.services.batch import (
    ITEM_PENDING,
    BatchSequencer,
    derive_batch_items,
    summarize,
)
from roomlift.services.orchestrator import get_orchestrator
import logging

logger = logging.getLogger(__name__)


@shared_task
def process_batch(batch_id):
    """
    Run every still-pending item of a batch, one at a time

    Steps:
    1. Derive item status from the batch's logs
    2. Mark the batch running
    3. Run the pending items through the orchestrator
    4. Mark the batch finished and return the derived counts

    Not retried: a re-run only picks up items that are still pending.
    """
    try:
        batch = JobBatch.objects.select_related("user").get(id=batch_id)
    except JobBatch.DoesNotExist:
        logger.error(f"JobBatch {batch_id} not found")
        return None

    pending = [
        item.image_id
        for item in derive_batch_items(batch)
        if item.status == ITEM_PENDING
    ]

    batch.status = JobBatch.STATUS_RUNNING
    if batch.started_at is None:
        batch.started_at = timezone.now()
    batch.save(update_fields=["status", "started_at"])

    logger.info(f"Processing batch {batch_id}: {len(pending)} pending of {len(batch.image_ids)} images")
    sequencer = BatchSequencer(get_orchestrator(batch.kind), batch.user)
    sequencer.run(
        pending,
        model_id=batch.ai_model_id,
        prompt_override=batch.prompt_override or None,
        batch=batch,
    )

    batch.status = JobBatch.STATUS_FINISHED
    batch.finished_at = timezone.now()
    batch.save(update_fields=["status", "finished_at"])

    counts = summarize(derive_batch_items(batch))
    logger.info(f"Batch {batch_id} finished: {counts}")
    return counts

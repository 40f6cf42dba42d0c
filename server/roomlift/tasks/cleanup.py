from celery import shared_task
from django.conf import settings
from django.utils import timezone
from datetime import timedelta
from roomlift.models import EnhancementLog, JobBatch
from roomlift.services.batch import close_stalled_batch
from roomlift.services.capacity import ProviderSlots
from roomlift.services.orchestrator import mark_failed
import logging

logger = logging.getLogger(__name__)


@shared_task
def fail_stale_jobs():
    """
    Periodic task failing jobs stuck in processing

    A worker that died mid-job leaves its log and image in `processing`, its
    provider slot taken and its batch `running`. Anything older than
    STALE_JOB_SECONDS is failed and refunded once, then the slot is freed
    and the batch closed.
    """
    cutoff_time = timezone.now() - timedelta(seconds=settings.STALE_JOB_SECONDS)
    stale_logs = EnhancementLog.objects.filter(
        status=EnhancementLog.STATUS_PROCESSING,
        started_at__lt=cutoff_time
    )

    count = 0
    for log in stale_logs:
        try:
            if mark_failed(log, "Job did not finish before the stale-job cutoff"):
                count += 1
        except Exception as e:
            logger.error(f"Error failing stale job {log.id}: {e}")

    ProviderSlots().reclaim_stale()

    closed = 0
    for batch in JobBatch.objects.filter(status=JobBatch.STATUS_RUNNING):
        try:
            if close_stalled_batch(batch, cutoff_time):
                closed += 1
        except Exception as e:
            logger.error(f"Error closing stalled batch {batch.id}: {e}")

    logger.info(f"Failed {count} stale jobs, closed {closed} stalled batches")
    return count

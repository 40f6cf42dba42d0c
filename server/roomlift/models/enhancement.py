"""Job log and batch models.

An `EnhancementLog` row is written when a job leaves the reservation step and
is closed exactly once at its terminal transition. `JobBatch` persists a batch
request so that its progress can always be re-derived from the logs.
"""

from django.conf import settings
from django.db import models


class EnhancementLog(models.Model):
    """One enhancement or decoration job against a single image"""

    STATUS_PENDING = "pending"
    STATUS_PROCESSING = "processing"
    STATUS_COMPLETED = "completed"
    STATUS_FAILED = "failed"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_PROCESSING, "Processing"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_FAILED, "Failed"),
    ]
    TERMINAL_STATUSES = (STATUS_COMPLETED, STATUS_FAILED)

    KIND_ENHANCEMENT = "enhancement"
    KIND_DECORATION = "decoration"

    KIND_CHOICES = [
        (KIND_ENHANCEMENT, "Enhancement"),
        (KIND_DECORATION, "Decoration"),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="enhancement_logs"
    )
    image = models.ForeignKey(
        "Image",
        on_delete=models.CASCADE,
        related_name="enhancement_logs"
    )
    ai_model = models.ForeignKey(
        "AIModel",
        null=True,
        on_delete=models.SET_NULL,
        related_name="enhancement_logs"
    )
    batch = models.ForeignKey(
        "JobBatch",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="logs"
    )
    kind = models.CharField(
        max_length=20,
        choices=KIND_CHOICES,
        default=KIND_ENHANCEMENT
    )
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_PENDING
    )
    cost_credits = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True
    )
    parameters = models.JSONField(default=dict, blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    result_url = models.URLField(max_length=1024, null=True, blank=True)
    error_message = models.TextField(blank=True)
    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    duration_ms = models.PositiveIntegerField(null=True, blank=True)
    refunded_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Set once when the reserved credits were returned"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "enhancement_logs"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["user", "-created_at"], name="enhancement_user_id_5e1f0a_idx"),
            models.Index(fields=["image", "status"], name="enhancement_image_i_7b3c2d_idx"),
            models.Index(fields=["status", "started_at"], name="enhancement_status_0d9e4b_idx"),
        ]

    def __str__(self):
        return f"{self.kind} log {self.id} - {self.status}"

    @property
    def is_terminal(self):
        return self.status in self.TERMINAL_STATUSES


class JobBatch(models.Model):
    """Ordered set of images processed one after another"""

    STATUS_PENDING = "pending"
    STATUS_RUNNING = "running"
    STATUS_FINISHED = "finished"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_RUNNING, "Running"),
        (STATUS_FINISHED, "Finished"),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="job_batches"
    )
    kind = models.CharField(
        max_length=20,
        choices=EnhancementLog.KIND_CHOICES,
        default=EnhancementLog.KIND_ENHANCEMENT
    )
    ai_model = models.ForeignKey(
        "AIModel",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="batches"
    )
    image_ids = models.JSONField(default=list)
    prompt_override = models.TextField(blank=True)
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_PENDING
    )
    item_errors = models.JSONField(
        default=dict,
        blank=True,
        help_text="Errors for items rejected before a log was written, keyed by image id"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    started_at = models.DateTimeField(null=True, blank=True)
    finished_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "job_batches"
        ordering = ["-created_at"]

    def __str__(self):
        return f"Batch {self.id} - {self.status} ({len(self.image_ids)} images)"

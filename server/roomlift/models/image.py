"""Image and AI model catalogue.

`Image` tracks one uploaded property photograph through its processing state
(original -> processing -> enhanced/failed). `AIModel` describes a provider
model the user can pick, including which adapter protocol drives it.
"""

from django.conf import settings
from django.db import models


class AIModel(models.Model):
    """Image-generation model offered by an external provider"""

    PROVIDER_KIND_SYNC = "sync"
    PROVIDER_KIND_ASYNC_QUEUE = "async-queue"

    PROVIDER_KIND_CHOICES = [
        (PROVIDER_KIND_SYNC, "Synchronous"),
        (PROVIDER_KIND_ASYNC_QUEUE, "Asynchronous queue"),
    ]

    model_identifier = models.CharField(
        max_length=255,
        unique=True,
        help_text="Provider-side model identifier, e.g. gpt-image-1 or fal-ai/reve/remix"
    )
    provider = models.CharField(
        max_length=50,
        help_text="Vendor label: openai, fal-ai, ..."
    )
    provider_kind = models.CharField(
        max_length=20,
        choices=PROVIDER_KIND_CHOICES,
        default=PROVIDER_KIND_SYNC,
        help_text="Protocol used to talk to the provider"
    )
    display_name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    settings = models.JSONField(
        default=dict,
        blank=True,
        help_text="Default prompts and inference parameters"
    )
    is_active = models.BooleanField(default=True)
    sort_order = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "ai_models"
        ordering = ["sort_order", "display_name"]

    def __str__(self):
        return f"{self.display_name} ({self.model_identifier})"


class Image(models.Model):
    """Property photograph owned by a user"""

    STATUS_ORIGINAL = "original"
    STATUS_PROCESSING = "processing"
    STATUS_ENHANCED = "enhanced"
    STATUS_FAILED = "failed"

    STATUS_CHOICES = [
        (STATUS_ORIGINAL, "Original"),
        (STATUS_PROCESSING, "Processing"),
        (STATUS_ENHANCED, "Enhanced"),
        (STATUS_FAILED, "Failed"),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="images"
    )
    folder_id = models.CharField(
        max_length=64,
        blank=True,
        default="",
        help_text="Folder reference managed by the upload service"
    )
    name = models.CharField(max_length=255, blank=True)
    mime_type = models.CharField(max_length=100, blank=True)
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_ORIGINAL
    )
    original_url = models.URLField(
        max_length=1024,
        help_text="Storage URL of the uploaded photograph"
    )
    result_url = models.URLField(
        max_length=1024,
        null=True,
        blank=True,
        help_text="Storage URL of the latest enhanced or decorated result"
    )
    watermarked_url = models.URLField(
        max_length=1024,
        null=True,
        blank=True,
        help_text="Storage URL of the watermarked copy"
    )
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "images"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "-created_at"], name="images_user_id_9a7d1e_idx"),
            models.Index(fields=["status"], name="images_status_4c2b8f_idx"),
        ]

    def __str__(self):
        return f"Image {self.id} - {self.status}"

    @property
    def is_processing(self):
        return self.status == self.STATUS_PROCESSING

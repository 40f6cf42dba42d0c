"""Job orchestrator shared by enhancement and decoration.

A job moves through reserve -> dispatch -> (poll) -> finalize. The image row,
the job log and the credit balance are separate writes, so every transition is
a conditional UPDATE on the state it expects to leave, and the refund for a
failed job is guarded by a one-time stamp on its log.
"""

import logging
import time
import uuid
from dataclasses import dataclass
from decimal import Decimal
from io import BytesIO
from typing import Optional

from django.conf import settings
from django.db import transaction
from django.utils import timezone
from PIL import Image as PILImage
from PIL import UnidentifiedImageError

from roomlift.const import DECORATION_PROMPT, ENHANCEMENT_PROMPT
from roomlift.models import AIModel, EnhancementLog, Image
from roomlift.providers import JobInvocation, get_adapter
from roomlift.services import ledger
from roomlift.services.capacity import ProviderSlots
from roomlift.utils.exceptions import (
    ImageBusyError,
    ImageForbiddenError,
    ImageNotFoundError,
    InvalidModelError,
    JobError,
    ProcessingError,
    ProviderError,
)
from roomlift.utils.storage import get_storage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JobKind:
    """What distinguishes one job flavour from another"""

    name: str
    default_prompt: str
    credit_cost: Decimal
    prompt_setting: str
    metadata_key: str
    file_prefix: str
    operation: Optional[str] = None


ENHANCEMENT = JobKind(
    name=EnhancementLog.KIND_ENHANCEMENT,
    default_prompt=ENHANCEMENT_PROMPT,
    credit_cost=Decimal("1.00"),
    prompt_setting="default_prompt",
    metadata_key="enhancement",
    file_prefix="enhanced",
)

DECORATION = JobKind(
    name=EnhancementLog.KIND_DECORATION,
    default_prompt=DECORATION_PROMPT,
    credit_cost=Decimal("1.50"),
    prompt_setting="decoration_prompt",
    metadata_key="decoration",
    file_prefix="decorated",
    operation="room_decoration",
)

JOB_KINDS = {kind.name: kind for kind in (ENHANCEMENT, DECORATION)}


def get_job_kind(name: str) -> JobKind:
    try:
        return JOB_KINDS[name]
    except KeyError:
        raise ValueError(f"Unknown job kind: {name}") from None


@dataclass
class JobResult:
    image: Image
    log: EnhancementLog
    result_url: str


def get_owned_image(user, image_id) -> Image:
    """404 when the image does not exist, 403 when it is someone else's"""
    image = Image.objects.filter(pk=image_id).first()
    if image is None:
        raise ImageNotFoundError(image_id)
    if image.user_id != user.pk:
        raise ImageForbiddenError(image_id)
    return image


def refund_once(log) -> bool:
    """Return the credits of a failed job unless that already happened"""
    if not log.cost_credits:
        return False
    with transaction.atomic():
        stamped = EnhancementLog.objects.filter(
            pk=log.pk,
            status=EnhancementLog.STATUS_FAILED,
            refunded_at__isnull=True,
        ).update(refunded_at=timezone.now())
        if not stamped:
            return False
        ledger.refund(
            log.user_id,
            log.cost_credits,
            enhancement_log=log,
            note=f"{log.kind} image {log.image_id} failed",
        )
    return True


def mark_failed(log, message: str, duration_ms: Optional[int] = None) -> bool:
    """
    Move a processing job to failed: log, image, then refund.

    Returns False when the log had already left `processing`; nothing is
    touched in that case.
    """
    now = timezone.now()
    closed = EnhancementLog.objects.filter(
        pk=log.pk,
        status=EnhancementLog.STATUS_PROCESSING,
    ).update(
        status=EnhancementLog.STATUS_FAILED,
        completed_at=now,
        duration_ms=duration_ms,
        error_message=message,
    )
    if not closed:
        return False

    Image.objects.filter(
        pk=log.image_id,
        status=Image.STATUS_PROCESSING,
    ).update(status=Image.STATUS_FAILED, updated_at=now)
    refund_once(log)
    logger.info(f"Job {log.pk} failed: {message}")
    return True


def sniff_mime_type(content: bytes) -> Optional[str]:
    try:
        with PILImage.open(BytesIO(content)) as img:
            return PILImage.MIME.get(img.format)
    except (UnidentifiedImageError, OSError):
        return None


def verify_image(content: bytes) -> str:
    """Check provider output decodes as an image and return its format"""
    try:
        with PILImage.open(BytesIO(content)) as img:
            img.verify()
            return (img.format or "png").lower()
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise ProviderError(f"Provider returned data that is not a valid image: {exc}") from exc


class JobOrchestrator:
    """
    Drive one enhancement or decoration job for one image

    Usage:
        result = JobOrchestrator(ENHANCEMENT).run(user, image_id, model_id=3)
    """

    def __init__(self, kind: JobKind, storage=None, slots=None, adapter_factory=get_adapter):
        self.kind = kind
        self.storage = storage or get_storage()
        self.slots = slots or ProviderSlots()
        self.adapter_factory = adapter_factory

    def resolve_image(self, user, image_id) -> Image:
        return get_owned_image(user, image_id)

    def resolve_model(self, model_id=None) -> AIModel:
        models = AIModel.objects.filter(is_active=True)
        if model_id:
            ai_model = models.filter(pk=model_id).first()
        else:
            ai_model = models.filter(model_identifier=settings.DEFAULT_AI_MODEL_IDENTIFIER).first()
        if ai_model is None:
            raise InvalidModelError(model_id)
        return ai_model

    def resolve_prompt(self, ai_model: AIModel, prompt_override: Optional[str] = None) -> str:
        if prompt_override and prompt_override.strip():
            return prompt_override
        configured = (ai_model.settings or {}).get(self.kind.prompt_setting)
        if isinstance(configured, str) and configured.strip():
            return configured
        return self.kind.default_prompt

    def run(self, user, image_id, model_id=None, prompt_override=None, batch=None) -> JobResult:
        """
        Run a job to a terminal state.

        Raises:
            JobError subclasses. Errors raised before the reservation leave
            no trace; errors after it leave the image and log failed and the
            credits refunded.
        """
        image = self.resolve_image(user, image_id)
        ai_model = self.resolve_model(model_id)
        prompt = self.resolve_prompt(ai_model, prompt_override)

        with self.slots.acquire():
            log = self._reserve(user, image, ai_model, prompt, batch)
            started = time.monotonic()
            try:
                result_url = self._dispatch_and_finalize(user, image, ai_model, prompt, log, started)
            except Exception as exc:
                message = str(exc) or type(exc).__name__
                if isinstance(exc, JobError):
                    logger.warning(f"{self.kind.name} job {log.pk} for image {image.pk} failed: {message}")
                else:
                    logger.exception(f"Unexpected error in {self.kind.name} job {log.pk} for image {image.pk}")
                mark_failed(log, message, duration_ms=self._elapsed_ms(started))
                if isinstance(exc, JobError):
                    raise
                raise ProcessingError(message, {"log_id": log.pk}) from exc

        image.refresh_from_db()
        log.refresh_from_db()
        logger.info(f"{self.kind.name} job {log.pk} for image {image.pk} completed in {log.duration_ms}ms")
        return JobResult(image=image, log=log, result_url=result_url)

    def _reserve(self, user, image, ai_model, prompt, batch) -> EnhancementLog:
        with transaction.atomic():
            claimed = Image.objects.filter(pk=image.pk).exclude(
                status=Image.STATUS_PROCESSING
            ).update(status=Image.STATUS_PROCESSING, updated_at=timezone.now())
            if not claimed:
                raise ImageBusyError(image.pk)

            reservation = ledger.reserve(
                user.pk,
                self.kind.credit_cost,
                note=f"{self.kind.name} image {image.pk}",
            )

            parameters = {"prompt": prompt, "model": ai_model.model_identifier}
            if self.kind.operation:
                parameters["operation"] = self.kind.operation
            log = EnhancementLog.objects.create(
                user=user,
                image=image,
                ai_model=ai_model,
                batch=batch,
                kind=self.kind.name,
                status=EnhancementLog.STATUS_PROCESSING,
                cost_credits=self.kind.credit_cost,
                started_at=timezone.now(),
                parameters=parameters,
            )
            reservation.enhancement_log = log
            reservation.save(update_fields=["enhancement_log"])

        logger.info(
            f"Started {self.kind.name} job {log.pk} for image {image.pk} "
            f"with {ai_model.model_identifier} ({self.kind.credit_cost} credits)"
        )
        return log

    def _dispatch_and_finalize(self, user, image, ai_model, prompt, log, started) -> str:
        source = self.storage.download(image.original_url)
        mime_type = image.mime_type or sniff_mime_type(source) or "image/png"

        adapter = self.adapter_factory(ai_model)
        invocation = JobInvocation(
            image_id=image.pk,
            ai_model=ai_model,
            prompt=prompt,
            source=source,
            mime_type=mime_type,
        )
        invocation.payload = adapter.build_payload(invocation)
        result = adapter.generate(invocation)

        extension = verify_image(result.content)
        folder = image.folder_id or "unfiled"
        path = f"{user.pk}/{folder}/{self.kind.file_prefix}-{uuid.uuid4()}"
        result_url = self.storage.upload(result.content, path)

        self._finalize(image, ai_model, log, result_url, extension, result.metadata, started)
        return result_url

    def _finalize(self, image, ai_model, log, result_url, extension, provider_metadata, started):
        now = timezone.now()
        metadata = dict(image.metadata or {})
        section = dict(metadata.get(self.kind.metadata_key) or {})
        section.update(
            model=ai_model.model_identifier,
            model_id=ai_model.pk,
            updated_at=now.isoformat(),
        )
        if self.kind.operation:
            section["operation"] = self.kind.operation
        metadata[self.kind.metadata_key] = section

        log_metadata = dict(log.metadata or {})
        log_metadata.update(provider_metadata)
        log_metadata.update(
            model_identifier=ai_model.model_identifier,
            provider=ai_model.provider,
            format=extension,
        )

        with transaction.atomic():
            updated = Image.objects.filter(
                pk=image.pk,
                status=Image.STATUS_PROCESSING,
            ).update(
                status=Image.STATUS_ENHANCED,
                result_url=result_url,
                metadata=metadata,
                updated_at=now,
            )
            if not updated:
                raise ProcessingError("Image left the processing state before its result was stored")

            closed = EnhancementLog.objects.filter(
                pk=log.pk,
                status=EnhancementLog.STATUS_PROCESSING,
            ).update(
                status=EnhancementLog.STATUS_COMPLETED,
                completed_at=now,
                duration_ms=self._elapsed_ms(started),
                result_url=result_url,
                metadata=log_metadata,
            )
            if not closed:
                raise ProcessingError("Job log was closed before its result was stored")

    @staticmethod
    def _elapsed_ms(started) -> int:
        return int((time.monotonic() - started) * 1000)


def get_orchestrator(kind_name: str) -> JobOrchestrator:
    return JobOrchestrator(get_job_kind(kind_name))

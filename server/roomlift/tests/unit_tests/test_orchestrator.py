import base64
from decimal import Decimal
from unittest.mock import patch

from django.core.cache import cache
from django.test import TestCase, override_settings
from django.utils import timezone

from roomlift.models import CreditTransaction, EnhancementLog, Image
from roomlift.services import ledger
from roomlift.services.capacity import ProviderSlots
from roomlift.services.orchestrator import (
    DECORATION,
    ENHANCEMENT,
    JobOrchestrator,
    get_job_kind,
    mark_failed,
    refund_once,
)
from roomlift.tests.helpers import (
    RESULT_URL,
    create_fal_model,
    create_image,
    create_openai_model,
    create_user,
    make_png_bytes,
    make_response,
    make_storage,
)
from roomlift.utils.exceptions import (
    ImageBusyError,
    ImageForbiddenError,
    ImageNotFoundError,
    InsufficientCreditsError,
    InvalidModelError,
    ProcessingError,
    ProviderCapacityError,
    ProviderError,
    ProviderTimeoutError,
    StorageError,
)

STATUS_URL = "https://queue.fal.run/fal-ai/reve/requests/req-1/status"
RESPONSE_URL = "https://queue.fal.run/fal-ai/reve/requests/req-1"
IMAGE_URL = "https://v3.fal.media/files/penguin/result.png"
SLOTS_KEY = "test:orchestrator_slots"


def _openai_success():
    encoded = base64.b64encode(make_png_bytes(color="yellow")).decode()
    return make_response(json_data={"data": [{"b64_json": encoded}]})


@override_settings(
    OPENAI_API_KEY="sk-test",
    FAL_API_KEY="fal-test",
    FAL_POLL_INTERVAL_SECONDS=1,
    FAL_MAX_POLL_ATTEMPTS=120,
    DEFAULT_AI_MODEL_IDENTIFIER="gpt-image-1",
)
class JobOrchestratorTest(TestCase):
    def setUp(self):
        cache.clear()
        self.user = create_user(balance="5.00")
        self.image = create_image(self.user)
        self.openai_model = create_openai_model()
        self.fal_model = create_fal_model()
        self.storage = make_storage()
        self.slots = ProviderSlots(limit=2, key=SLOTS_KEY, ttl=60)

    def _orchestrator(self, kind=ENHANCEMENT):
        return JobOrchestrator(kind, storage=self.storage, slots=self.slots)

    def _balance(self):
        return ledger.balance(self.user.id)

    @patch("roomlift.providers.openai_client.requests.post")
    def test_sync_provider_success(self, mock_post):
        mock_post.return_value = _openai_success()

        result = self._orchestrator().run(self.user, self.image.id)

        self.assertEqual(self._balance(), Decimal("4.00"))
        self.assertEqual(result.result_url, RESULT_URL)
        self.assertEqual(result.image.status, Image.STATUS_ENHANCED)
        self.assertEqual(result.image.result_url, RESULT_URL)
        self.assertEqual(result.image.metadata["enhancement"]["model"], "gpt-image-1")
        self.assertEqual(result.image.metadata["enhancement"]["model_id"], self.openai_model.id)
        self.assertEqual(result.log.status, EnhancementLog.STATUS_COMPLETED)
        self.assertEqual(result.log.cost_credits, Decimal("1.00"))
        self.assertEqual(result.log.metadata["provider"], "openai")
        self.assertIsNotNone(result.log.completed_at)
        self.assertIsNotNone(result.log.duration_ms)
        self.assertEqual(self.slots.in_use(), 0)

        reservation = CreditTransaction.objects.get(user=self.user)
        self.assertEqual(reservation.enhancement_log_id, result.log.id)

        path = self.storage.upload.call_args[0][1]
        self.assertTrue(path.startswith(f"{self.user.id}/listing-42/enhanced-"))

    @patch("roomlift.providers.fal_client.time.sleep")
    @patch("roomlift.providers.fal_client.requests.get")
    @patch("roomlift.providers.fal_client.requests.post")
    def test_inline_and_queued_results_have_the_same_outcome(self, mock_post, mock_get, _mock_sleep):
        result_bytes = make_png_bytes(color="green")
        queued_image = create_image(self.user)
        mock_post.side_effect = [
            make_response(json_data={"images": [{"url": IMAGE_URL}]}),
            make_response(json_data={"request_id": "req-1", "status_url": STATUS_URL}),
        ]
        responses = {
            STATUS_URL: [
                make_response(json_data={"status": "IN_PROGRESS"}),
                make_response(json_data={"status": "COMPLETED", "response_url": RESPONSE_URL}),
            ],
            RESPONSE_URL: [make_response(json_data={"images": [{"url": IMAGE_URL}]})],
        }

        def fake_get(url, **kwargs):
            if url == IMAGE_URL:
                return make_response(content=result_bytes)
            return responses[url].pop(0)

        mock_get.side_effect = fake_get

        inline = self._orchestrator().run(self.user, self.image.id, model_id=self.fal_model.id)
        self.assertEqual(self._balance(), Decimal("4.00"))
        queued = self._orchestrator().run(self.user, queued_image.id, model_id=self.fal_model.id)
        self.assertEqual(self._balance(), Decimal("3.00"))

        for result in (inline, queued):
            self.assertEqual(result.image.status, Image.STATUS_ENHANCED)
            self.assertEqual(result.image.result_url, RESULT_URL)
            self.assertEqual(result.image.metadata["enhancement"]["model"], "fal-ai/reve/remix")
            self.assertEqual(result.log.status, EnhancementLog.STATUS_COMPLETED)
            self.assertEqual(result.log.metadata["provider"], "fal-ai")
            self.assertEqual(result.log.metadata["format"], "png")
            self.assertIsNone(result.log.refunded_at)

        uploaded = [call[0][0] for call in self.storage.upload.call_args_list]
        self.assertEqual(uploaded, [result_bytes, result_bytes])

        self.assertEqual(inline.log.metadata["delivery"], "inline")
        self.assertNotIn("poll_attempts", inline.log.metadata)
        self.assertEqual(queued.log.metadata["delivery"], "queue")
        self.assertEqual(queued.log.metadata["request_id"], "req-1")
        self.assertEqual(queued.log.metadata["poll_attempts"], 2)
        self.assertEqual(self.slots.in_use(), 0)

    @patch("roomlift.providers.openai_client.requests.post")
    def test_decoration_uses_its_own_cost_and_metadata_key(self, mock_post):
        mock_post.return_value = _openai_success()

        result = self._orchestrator(DECORATION).run(self.user, self.image.id)

        self.assertEqual(self._balance(), Decimal("3.50"))
        self.assertEqual(result.log.kind, EnhancementLog.KIND_DECORATION)
        self.assertEqual(result.log.parameters["operation"], "room_decoration")
        self.assertEqual(result.image.metadata["decoration"]["operation"], "room_decoration")
        self.assertNotIn("enhancement", result.image.metadata)
        path = self.storage.upload.call_args[0][1]
        self.assertIn("/decorated-", path)

    @patch("roomlift.providers.fal_client.time.sleep")
    @patch("roomlift.providers.fal_client.requests.get")
    @patch("roomlift.providers.fal_client.requests.post")
    def test_queue_failure_on_third_poll_refunds(self, mock_post, mock_get, _mock_sleep):
        mock_post.return_value = make_response(
            json_data={"request_id": "req-1", "status_url": STATUS_URL}
        )
        mock_get.side_effect = [
            make_response(json_data={"status": "IN_QUEUE"}),
            make_response(json_data={"status": "IN_PROGRESS"}),
            make_response(json_data={"status": "FAILED", "error": "Content policy violation"}),
        ]

        with self.assertRaises(ProviderError):
            self._orchestrator().run(self.user, self.image.id, model_id=self.fal_model.id)

        self.image.refresh_from_db()
        log = EnhancementLog.objects.get(image=self.image)
        self.assertEqual(self._balance(), Decimal("5.00"))
        self.assertEqual(self.image.status, Image.STATUS_FAILED)
        self.assertEqual(log.status, EnhancementLog.STATUS_FAILED)
        self.assertEqual(log.error_message, "Content policy violation")
        self.assertIsNotNone(log.refunded_at)
        self.storage.upload.assert_not_called()

    def test_insufficient_credits_mutates_nothing(self):
        self.user.credit_balance = Decimal("0.50")
        self.user.save()

        with self.assertRaises(InsufficientCreditsError) as ctx:
            self._orchestrator(DECORATION).run(self.user, self.image.id)

        self.image.refresh_from_db()
        self.assertEqual(ctx.exception.details, {"required": "1.50", "available": "0.50"})
        self.assertEqual(self._balance(), Decimal("0.50"))
        self.assertEqual(self.image.status, Image.STATUS_ORIGINAL)
        self.assertFalse(EnhancementLog.objects.exists())
        self.assertFalse(CreditTransaction.objects.exists())
        self.storage.download.assert_not_called()

    @override_settings(FAL_MAX_POLL_ATTEMPTS=120)
    @patch("roomlift.providers.fal_client.time.sleep")
    @patch("roomlift.providers.fal_client.requests.get")
    @patch("roomlift.providers.fal_client.requests.post")
    def test_queue_never_terminal_times_out_and_refunds(self, mock_post, mock_get, mock_sleep):
        mock_post.return_value = make_response(
            json_data={"request_id": "req-1", "status_url": STATUS_URL}
        )
        mock_get.return_value = make_response(json_data={"status": "IN_PROGRESS"})

        with self.assertRaises(ProviderTimeoutError):
            self._orchestrator().run(self.user, self.image.id, model_id=self.fal_model.id)

        self.image.refresh_from_db()
        self.assertEqual(mock_get.call_count, 120)
        self.assertEqual(mock_sleep.call_count, 120)
        self.assertEqual(self._balance(), Decimal("5.00"))
        self.assertEqual(self.image.status, Image.STATUS_FAILED)
        self.assertEqual(
            EnhancementLog.objects.get(image=self.image).status,
            EnhancementLog.STATUS_FAILED,
        )

    def test_missing_image(self):
        with self.assertRaises(ImageNotFoundError):
            self._orchestrator().run(self.user, 999999)

    def test_image_of_another_user(self):
        other = create_user(username="other@example.com")
        foreign_image = create_image(other)

        with self.assertRaises(ImageForbiddenError):
            self._orchestrator().run(self.user, foreign_image.id)

        self.assertEqual(self._balance(), Decimal("5.00"))

    def test_inactive_model_is_invalid(self):
        self.fal_model.is_active = False
        self.fal_model.save()

        with self.assertRaises(InvalidModelError):
            self._orchestrator().run(self.user, self.image.id, model_id=self.fal_model.id)

        self.assertEqual(self._balance(), Decimal("5.00"))

    @override_settings(DEFAULT_AI_MODEL_IDENTIFIER="not-seeded")
    def test_missing_default_model_is_invalid(self):
        with self.assertRaises(InvalidModelError):
            self._orchestrator().run(self.user, self.image.id)

    def test_busy_image_is_rejected(self):
        self.image.status = Image.STATUS_PROCESSING
        self.image.save()

        with self.assertRaises(ImageBusyError):
            self._orchestrator().run(self.user, self.image.id)

        self.assertEqual(self._balance(), Decimal("5.00"))
        self.assertFalse(EnhancementLog.objects.exists())

    def test_no_free_slot_is_rejected_without_mutation(self):
        full = ProviderSlots(limit=1, key=SLOTS_KEY, ttl=60)
        orchestrator = JobOrchestrator(ENHANCEMENT, storage=self.storage, slots=full)

        with full.acquire():
            with self.assertRaises(ProviderCapacityError):
                orchestrator.run(self.user, self.image.id)

        self.image.refresh_from_db()
        self.assertEqual(self.image.status, Image.STATUS_ORIGINAL)
        self.assertEqual(self._balance(), Decimal("5.00"))

    @patch("roomlift.providers.openai_client.requests.post")
    def test_upload_failure_refunds(self, mock_post):
        mock_post.return_value = _openai_success()
        self.storage.upload.side_effect = StorageError("Failed to upload result image: 500")

        with self.assertRaises(StorageError):
            self._orchestrator().run(self.user, self.image.id)

        self.image.refresh_from_db()
        self.assertEqual(self._balance(), Decimal("5.00"))
        self.assertEqual(self.image.status, Image.STATUS_FAILED)

    @patch("roomlift.providers.openai_client.requests.post")
    def test_undecodable_provider_output_is_provider_error(self, mock_post):
        encoded = base64.b64encode(b"definitely not a png").decode()
        mock_post.return_value = make_response(json_data={"data": [{"b64_json": encoded}]})

        with self.assertRaises(ProviderError):
            self._orchestrator().run(self.user, self.image.id)

        self.assertEqual(self._balance(), Decimal("5.00"))
        self.storage.upload.assert_not_called()

    @patch("roomlift.providers.openai_client.requests.post", side_effect=RuntimeError("socket closed"))
    def test_unexpected_error_is_wrapped_and_refunded(self, _mock_post):
        with self.assertRaises(ProcessingError) as ctx:
            self._orchestrator().run(self.user, self.image.id)

        log = EnhancementLog.objects.get(image=self.image)
        self.assertEqual(str(ctx.exception), "socket closed")
        self.assertEqual(log.error_message, "socket closed")
        self.assertEqual(self._balance(), Decimal("5.00"))

    @patch("roomlift.providers.openai_client.requests.post")
    def test_prompt_resolution_order(self, mock_post):
        mock_post.return_value = _openai_success()
        orchestrator = self._orchestrator(DECORATION)

        self.assertEqual(orchestrator.resolve_prompt(self.openai_model), DECORATION.default_prompt)
        self.assertEqual(orchestrator.resolve_prompt(self.openai_model, "   "), DECORATION.default_prompt)

        self.openai_model.settings = {"decoration_prompt": "Scandinavian staging", "default_prompt": "x"}
        self.assertEqual(orchestrator.resolve_prompt(self.openai_model), "Scandinavian staging")
        self.assertEqual(orchestrator.resolve_prompt(self.openai_model, "Add a sofa"), "Add a sofa")

        result = orchestrator.run(self.user, self.image.id, prompt_override="Add a sofa")
        self.assertEqual(result.log.parameters["prompt"], "Add a sofa")
        self.assertEqual(mock_post.call_args[1]["data"]["prompt"], "Add a sofa")

    @patch("roomlift.providers.openai_client.requests.post")
    def test_failed_image_can_be_retried(self, mock_post):
        self.image.status = Image.STATUS_FAILED
        self.image.save()
        mock_post.return_value = _openai_success()

        result = self._orchestrator().run(self.user, self.image.id)

        self.assertEqual(result.image.status, Image.STATUS_ENHANCED)


class RefundOnceTest(TestCase):
    def setUp(self):
        self.user = create_user(balance="4.00")
        self.image = create_image(self.user, status=Image.STATUS_PROCESSING)
        self.log = EnhancementLog.objects.create(
            user=self.user,
            image=self.image,
            status=EnhancementLog.STATUS_PROCESSING,
            cost_credits=Decimal("1.00"),
            started_at=timezone.now(),
        )

    def test_mark_failed_refunds_exactly_once(self):
        self.assertTrue(mark_failed(self.log, "worker lost"))
        self.assertFalse(mark_failed(self.log, "worker lost again"))
        self.assertFalse(refund_once(self.log))

        self.log.refresh_from_db()
        self.image.refresh_from_db()
        self.assertEqual(ledger.balance(self.user.id), Decimal("5.00"))
        self.assertEqual(self.log.error_message, "worker lost")
        self.assertEqual(self.image.status, Image.STATUS_FAILED)
        self.assertEqual(
            CreditTransaction.objects.filter(transaction_type=CreditTransaction.TYPE_REFUND).count(),
            1,
        )

    def test_completed_log_is_never_refunded(self):
        EnhancementLog.objects.filter(pk=self.log.pk).update(status=EnhancementLog.STATUS_COMPLETED)

        self.assertFalse(mark_failed(self.log, "late failure"))
        self.assertFalse(refund_once(self.log))
        self.assertEqual(ledger.balance(self.user.id), Decimal("4.00"))


class JobKindTest(TestCase):
    def test_kinds_by_name(self):
        self.assertIs(get_job_kind("enhancement"), ENHANCEMENT)
        self.assertIs(get_job_kind("decoration"), DECORATION)
        self.assertEqual(ENHANCEMENT.credit_cost, Decimal("1.00"))
        self.assertEqual(DECORATION.credit_cost, Decimal("1.50"))

from decimal import Decimal

from django.db import IntegrityError
from django.test import TestCase

from roomlift.models import EnhancementLog, Image, JobBatch, User
from roomlift.tests.helpers import create_image, create_openai_model, create_user


class UserModelTest(TestCase):
    def test_create_user_defaults(self):
        user = User.objects.create(email="test@example.com", username="test@example.com")

        self.assertEqual(user.credit_balance, Decimal("0.00"))
        self.assertEqual(str(user), "test@example.com")

    def test_negative_balance_is_rejected_by_the_database(self):
        user = create_user()

        with self.assertRaises(IntegrityError):
            User.objects.filter(pk=user.pk).update(credit_balance=Decimal("-1.00"))


class AIModelTest(TestCase):
    def test_model_identifier_is_unique(self):
        create_openai_model()

        with self.assertRaises(IntegrityError):
            create_openai_model()

    def test_defaults(self):
        ai_model = create_openai_model()

        self.assertTrue(ai_model.is_active)
        self.assertEqual(ai_model.settings, {})
        self.assertIn("gpt-image-1", str(ai_model))


class ImageModelTest(TestCase):
    def test_create_image_defaults(self):
        image = create_image(create_user())

        self.assertEqual(image.status, Image.STATUS_ORIGINAL)
        self.assertFalse(image.is_processing)
        self.assertIsNone(image.result_url)
        self.assertEqual(image.metadata, {})


class EnhancementLogModelTest(TestCase):
    def test_log_defaults_and_terminal_flag(self):
        user = create_user()
        log = EnhancementLog.objects.create(user=user, image=create_image(user))

        self.assertEqual(log.status, EnhancementLog.STATUS_PENDING)
        self.assertEqual(log.kind, EnhancementLog.KIND_ENHANCEMENT)
        self.assertFalse(log.is_terminal)
        self.assertIsNone(log.refunded_at)

        log.status = EnhancementLog.STATUS_FAILED
        self.assertTrue(log.is_terminal)

    def test_batch_keeps_its_logs(self):
        user = create_user()
        batch = JobBatch.objects.create(user=user, image_ids=[1, 2])
        log = EnhancementLog.objects.create(user=user, image=create_image(user), batch=batch)

        self.assertEqual(list(batch.logs.all()), [log])
        self.assertIn("2 images", str(batch))

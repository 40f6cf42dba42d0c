"""Django management command to seed the AI model catalogue.

This command is intended for development/initial deployment and is idempotent:
it uses ``get_or_create`` so running it multiple times will not duplicate rows
or overwrite settings edited in the admin.
"""

from django.core.management.base import BaseCommand

from roomlift.models import AIModel

AI_MODELS = [
    {
        "model_identifier": "gpt-image-1",
        "provider": "openai",
        "provider_kind": AIModel.PROVIDER_KIND_SYNC,
        "display_name": "GPT Image 1",
        "description": "OpenAI image edits, returns the result in the same response",
        "settings": {"quality": "high", "size": "auto", "input_fidelity": "high"},
        "sort_order": 0,
    },
    {
        "model_identifier": "fal-ai/flux-pro",
        "provider": "fal-ai",
        "provider_kind": AIModel.PROVIDER_KIND_ASYNC_QUEUE,
        "display_name": "FLUX Pro",
        "description": "Black Forest Labs FLUX Pro on fal.ai",
        "settings": {"output_format": "png"},
        "sort_order": 10,
    },
    {
        "model_identifier": "fal-ai/reve/remix",
        "provider": "fal-ai",
        "provider_kind": AIModel.PROVIDER_KIND_ASYNC_QUEUE,
        "display_name": "Reve Remix",
        "description": "Reve remix on fal.ai, queued",
        "settings": {"output_format": "png", "image_param": "image_urls"},
        "sort_order": 20,
    },
    {
        "model_identifier": "fal-ai/nano-banana-pro/edit",
        "provider": "fal-ai",
        "provider_kind": AIModel.PROVIDER_KIND_ASYNC_QUEUE,
        "display_name": "Nano Banana Pro",
        "description": "Gemini image editing on fal.ai",
        "settings": {"output_format": "png", "image_param": "image_urls"},
        "sort_order": 30,
    },
]


class Command(BaseCommand):
    """Create (or ensure existence of) default `AIModel` rows."""

    help = "Create the default AI model catalogue"

    def handle(self, *args, **options):
        for model_data in AI_MODELS:
            identifier = model_data["model_identifier"]
            defaults = {key: value for key, value in model_data.items() if key != "model_identifier"}
            ai_model, created = AIModel.objects.get_or_create(
                model_identifier=identifier,
                defaults=defaults,
            )

            if created:
                self.stdout.write(
                    self.style.SUCCESS(
                        f"Created AI model: {ai_model.display_name} ({ai_model.provider_kind})"
                    )
                )
            else:
                self.stdout.write(
                    self.style.WARNING(f"AI model already exists: {identifier}")
                )

        self.stdout.write(self.style.SUCCESS("AI model catalogue initialization complete"))

from django.apps import AppConfig
from django.conf import settings
from django.core.checks import Tags, Warning, register


class RoomliftConfig(AppConfig):
    name = "roomlift"
    default_auto_field = "django.db.models.BigAutoField"

    def ready(self) -> None:
        @register(Tags.compatibility)
        def _check_provider_keys(app_configs, **kwargs):
            """
            Jobs fail at dispatch time (after credits are reserved) when no provider key is set.
            """
            issues = []
            if not getattr(settings, "OPENAI_API_KEY", ""):
                issues.append(
                    Warning(
                        "OPENAI_API_KEY is not set; synchronous models will fail.",
                        hint="Set OPENAI_API_KEY in the environment or .env file",
                        id="roomlift.W001",
                    )
                )
            if not getattr(settings, "FAL_API_KEY", ""):
                issues.append(
                    Warning(
                        "FAL_API_KEY is not set; queue models will fail.",
                        hint="Set FAL_API_KEY in the environment or .env file",
                        id="roomlift.W002",
                    )
                )
            return issues

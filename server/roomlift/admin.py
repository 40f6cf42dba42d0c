from decimal import Decimal

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from roomlift.models import AIModel, CreditTransaction, EnhancementLog, Image, JobBatch, User
from roomlift.services import ledger
from roomlift.services.orchestrator import mark_failed

ADMIN_GRANT_AMOUNT = Decimal("10.00")


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Admin for custom User model."""

    list_display = [
        "username",
        "email",
        "real_estate_office",
        "credit_balance",
        "created_at",
    ]
    list_filter = ["is_staff", "created_at"]
    search_fields = ["username", "email", "first_name", "last_name", "real_estate_office"]
    readonly_fields = ["credit_balance", "created_at", "updated_at"]

    fieldsets = (
        (None, {"fields": ("username", "email", "password")}),
        ("Personal Info", {"fields": ("first_name", "last_name", "real_estate_office")}),
        ("Credits", {"fields": ("credit_balance",)}),
        (
            "Permissions",
            {
                "fields": (
                    "is_active",
                    "is_staff",
                    "is_superuser",
                    "groups",
                    "user_permissions",
                )
            },
        ),
        ("Important Dates", {"fields": ("last_login", "created_at", "updated_at")}),
    )

    ordering = ["-created_at"]
    actions = ["grant_credits"]

    def grant_credits(self, request, queryset):
        """Top up selected users through the ledger."""
        for user in queryset:
            ledger.grant(user.pk, ADMIN_GRANT_AMOUNT, note=f"Admin grant by {request.user}")
        self.message_user(request, f"Granted {ADMIN_GRANT_AMOUNT} credits to {queryset.count()} users")

    grant_credits.short_description = f"Grant {ADMIN_GRANT_AMOUNT} credits"


@admin.register(AIModel)
class AIModelAdmin(admin.ModelAdmin):
    """Admin for AIModel model."""

    list_display = ["display_name", "model_identifier", "provider", "provider_kind", "is_active", "sort_order"]
    list_filter = ["provider", "provider_kind", "is_active"]
    search_fields = ["display_name", "model_identifier"]
    list_editable = ["is_active", "sort_order"]


@admin.register(Image)
class ImageAdmin(admin.ModelAdmin):
    """Admin for Image model."""

    list_display = ["id", "user", "name", "status", "created_at", "updated_at"]
    list_filter = ["status", "created_at"]
    search_fields = ["user__email", "name", "folder_id"]
    readonly_fields = ["created_at", "updated_at"]
    date_hierarchy = "created_at"

    fieldsets = (
        (None, {"fields": ("user", "folder_id", "name", "mime_type", "status")}),
        ("Storage", {"fields": ("original_url", "result_url", "watermarked_url")}),
        ("Metadata", {"fields": ("metadata",)}),
        ("Timestamps", {"fields": ("created_at", "updated_at")}),
    )


@admin.register(EnhancementLog)
class EnhancementLogAdmin(admin.ModelAdmin):
    """Admin for EnhancementLog model."""

    list_display = ["id", "user", "image", "kind", "status", "ai_model", "cost_credits", "refunded_at", "created_at"]
    list_filter = ["kind", "status", "created_at"]
    search_fields = ["user__email", "error_message"]
    readonly_fields = [field.name for field in EnhancementLog._meta.fields]
    date_hierarchy = "created_at"

    actions = ["fail_and_refund"]

    def fail_and_refund(self, request, queryset):
        """Fail selected processing jobs and refund them once."""
        count = 0
        for log in queryset.filter(status=EnhancementLog.STATUS_PROCESSING):
            if mark_failed(log, f"Failed manually by {request.user}"):
                count += 1
        self.message_user(request, f"{count} jobs failed and refunded")

    fail_and_refund.short_description = "Fail and refund selected processing jobs"


@admin.register(JobBatch)
class JobBatchAdmin(admin.ModelAdmin):
    """Admin for JobBatch model."""

    list_display = ["id", "user", "kind", "status", "created_at", "finished_at"]
    list_filter = ["kind", "status"]
    search_fields = ["user__email"]
    readonly_fields = ["created_at", "started_at", "finished_at"]


@admin.register(CreditTransaction)
class CreditTransactionAdmin(admin.ModelAdmin):
    """Admin for CreditTransaction model."""

    list_display = [
        "id",
        "user",
        "amount",
        "transaction_type",
        "enhancement_log",
        "created_at",
    ]
    list_filter = ["transaction_type", "created_at"]
    search_fields = ["user__email", "note"]
    readonly_fields = [
        "user",
        "amount",
        "transaction_type",
        "enhancement_log",
        "note",
        "created_at",
    ]
    date_hierarchy = "created_at"

    fieldsets = (
        (None, {"fields": ("user", "amount", "transaction_type")}),
        ("Job", {"fields": ("enhancement_log", "note")}),
        ("Timestamp", {"fields": ("created_at",)}),
    )

from django.contrib import admin
from .models import Call, DeclinedCall, TranscriptSegment, FunctionCallEvent


class TranscriptSegmentInline(admin.TabularInline):
    model = TranscriptSegment
    extra = 0
    readonly_fields = ("role", "content", "created_at")


@admin.register(Call)
class CallAdmin(admin.ModelAdmin):
    list_display = ("provider_call_id", "company", "lifecycle_state", "duration_seconds", "sentiment",
                    "priority", "billed_at", "created_at")
    list_filter = ("lifecycle_state", "sentiment", "priority")
    search_fields = ("provider_call_id", "caller_number", "recipient_number", "company__name")
    readonly_fields = ("billed_at", "created_at", "updated_at")
    inlines = [TranscriptSegmentInline]


@admin.register(FunctionCallEvent)
class FunctionCallEventAdmin(admin.ModelAdmin):
    list_display = ("function_name", "provider_call_id", "company", "created_at")
    search_fields = ("function_name", "provider_call_id")


@admin.register(DeclinedCall)
class DeclinedCallAdmin(admin.ModelAdmin):
    list_display = ("provider_call_id", "company", "reason", "created_at")
    search_fields = ("provider_call_id", "company__name")
    readonly_fields = ("created_at",)

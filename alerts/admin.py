from django.contrib import admin
from .models import AlertChannel, AlertDelivery


@admin.register(AlertChannel)
class AlertChannelAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "company", "url", "min_severity", "active", "max_retries", "created_at")
    list_filter = ("active", "min_severity")
    search_fields = ("name", "url")


@admin.register(AlertDelivery)
class AlertDeliveryAdmin(admin.ModelAdmin):
    list_display = ("id", "alert_id", "channel", "event", "severity", "attempt", "status_code", "ok", "duration_ms",
                    "created_at")
    list_filter = ("ok", "event", "severity")
    search_fields = ("alert_id",)
    readonly_fields = ("created_at",)

from django.contrib import admin
from .models import UsageLog


@admin.register(UsageLog)
class UsageLogAdmin(admin.ModelAdmin):
    list_display = ("id", "company", "resource_type", "quantity", "cost_cents", "reference_id", "created_at")
    list_filter = ("resource_type",)
    search_fields = ("reference_id", "company__name")
    readonly_fields = ("created_at",)

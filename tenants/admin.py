from django.contrib import admin
from .models import Company, Plan, Agent, PhoneNumber


@admin.register(Plan)
class PlanAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "slug", "active", "voice_minutes", "overage_rate_per_minute", "created_at")
    list_filter = ("active",)
    search_fields = ("name", "slug")
    readonly_fields = ("created_at",)


@admin.register(Company)
class CompanyAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "status", "support_email", "created_at", "updated_at", "last_usage_at")
    list_filter = ("status",)
    search_fields = ("name", "support_email")
    readonly_fields = ("created_at", "updated_at", "last_usage_at")


@admin.register(Agent)
class AgentAdmin(admin.ModelAdmin):
    list_display = ("id", "company", "name", "provider_assistant_id", "active", "created_at")
    list_filter = ("active",)
    search_fields = ("name", "provider_assistant_id", "company__name")


@admin.register(PhoneNumber)
class PhoneNumberAdmin(admin.ModelAdmin):
    list_display = ("id", "number", "company", "agent", "is_active", "created_at")
    list_filter = ("is_active",)
    search_fields = ("number", "company__name")

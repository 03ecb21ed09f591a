from django.contrib import admin
from .models import Subscription, UsagePeriod, Wallet, WalletTransaction


@admin.register(Subscription)
class SubscriptionAdmin(admin.ModelAdmin):
    list_display = ("id", "company", "plan", "status", "created_at")
    list_filter = ("status", "plan")
    search_fields = ("company__name", "provider_subscription_id")


@admin.register(UsagePeriod)
class UsagePeriodAdmin(admin.ModelAdmin):
    list_display = ("id", "subscription", "period_start", "period_end", "voice_minutes_used")
    readonly_fields = ("voice_minutes_used", "created_at")


@admin.register(Wallet)
class WalletAdmin(admin.ModelAdmin):
    list_display = ("id", "company", "balance", "currency", "updated_at")
    search_fields = ("company__name",)
    # solde modifié uniquement via le ledger
    readonly_fields = ("balance", "created_at", "updated_at")


@admin.register(WalletTransaction)
class WalletTransactionAdmin(admin.ModelAdmin):
    list_display = ("id", "wallet", "type", "amount", "reference_id", "created_at")
    list_filter = ("type",)
    search_fields = ("reference_id", "description")

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

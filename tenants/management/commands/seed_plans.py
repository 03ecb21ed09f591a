from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from tenants.models import Plan

# Grille publique; voice_minutes=None => illimité (enterprise)
DEFAULT_PLANS = [
    {"slug": "starter", "name": "Starter", "voice_minutes": 240,
     "quotas": {"sms_messages": 1500, "emails": 1000, "phone_numbers": 1}},
    {"slug": "professional", "name": "Professional", "voice_minutes": 600,
     "quotas": {"sms_messages": 5000, "emails": 3000, "phone_numbers": 2}},
    {"slug": "professional_plus", "name": "Professional+", "voice_minutes": 4000,
     "quotas": {"sms_messages": 15000, "emails": 10000, "phone_numbers": 5}},
    {"slug": "enterprise", "name": "Enterprise", "voice_minutes": None,
     "quotas": {}},
]
OVERAGE_RATE = Decimal("0.35")


class Command(BaseCommand):
    help = "Crée ou met à jour les plans tarifaires par défaut."

    @transaction.atomic
    def handle(self, *args, **options):
        for row in DEFAULT_PLANS:
            plan, created = Plan.objects.update_or_create(
                slug=row["slug"],
                defaults={
                    "name": row["name"],
                    "voice_minutes": row["voice_minutes"],
                    "overage_rate_per_minute": OVERAGE_RATE,
                    "quotas": row["quotas"],
                    "active": True,
                },
            )
            self.stdout.write(f"{'created' if created else 'updated'} {plan.slug}")

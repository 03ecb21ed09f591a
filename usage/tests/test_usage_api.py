from django.contrib.auth import get_user_model
from django.test import TestCase, Client

from tenants.models import Company
from usage.models import UsageLog


class UsageLogAdminApiTest(TestCase):
    def setUp(self):
        self.acme = Company.objects.create(name="ACME")
        globex = Company.objects.create(name="Globex")
        for i, (company, qty, cost) in enumerate([(self.acme, 5, 0), (self.acme, 3, 105), (globex, 1, 35)]):
            UsageLog.objects.create(company=company, resource_type=UsageLog.RESOURCE_VOICE_INBOUND,
                                    quantity=qty, cost_cents=cost, reference_id=f"call_{i}")
        admin = get_user_model().objects.create_superuser("root", "root@example.com", "pw")
        self.client = Client()
        self.client.force_login(admin)

    def test_list_with_summary(self):
        resp = self.client.get(f"/api/v1/admin/usage/?company_id={self.acme.id}")
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual(len(data["results"]), 2)
        self.assertEqual(data["summary"], [
            {"resource_type": "voice_inbound", "total_quantity": 8, "total_cost_cents": 105},
        ])

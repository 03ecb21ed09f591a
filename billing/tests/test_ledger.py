from io import StringIO
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.core.management.base import CommandError
from django.db import IntegrityError, transaction
from django.test import TestCase, Client

from alerts.models import AlertChannel, AlertDelivery
from billing.exceptions import WalletNotFound
from billing.models import Wallet, WalletTransaction
from billing.services import ledger
from tenants.models import Company


class LedgerTest(TestCase):
    def setUp(self):
        self.company = Company.objects.create(name="ACME")
        self.wallet = Wallet.objects.create(company=self.company)

    def test_credit_then_debit(self):
        ledger.credit(self.wallet.id, 1000, reference_id="pi_1", description="Stripe top-up")
        tx = ledger.debit(self.wallet.id, 105, "call_1", "Voice call overage")
        self.wallet.refresh_from_db()
        self.assertEqual(self.wallet.balance, 895)
        self.assertEqual(tx.amount, -105)
        self.assertEqual(tx.type, WalletTransaction.TYPE_USAGE)
        self.assertTrue(ledger.reconcile_wallet(self.wallet).ok)

    def test_debit_uses_atomic_increment(self):
        ledger.credit(self.wallet.id, 500)
        stale = Wallet.objects.get(pk=self.wallet.pk)
        ledger.debit(self.wallet.id, 100, "call_1", "a")
        ledger.debit(stale.id, 100, "call_2", "b")
        self.wallet.refresh_from_db()
        self.assertEqual(self.wallet.balance, 300)

    def test_same_call_cannot_be_debited_twice(self):
        ledger.credit(self.wallet.id, 500)
        ledger.debit(self.wallet.id, 70, "call_1", "first")
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                ledger.debit(self.wallet.id, 70, "call_1", "second")
        self.wallet.refresh_from_db()
        self.assertEqual(self.wallet.balance, 430)

    def test_invalid_amounts(self):
        with self.assertRaises(ValueError):
            ledger.debit(self.wallet.id, 0, "c", "")
        with self.assertRaises(ValueError):
            ledger.credit(self.wallet.id, -5)
        with self.assertRaises(ValueError):
            ledger.credit(self.wallet.id, 5, type=WalletTransaction.TYPE_USAGE)

    def test_unknown_wallet(self):
        with self.assertRaises(WalletNotFound):
            ledger.debit(999999, 10, "c", "")
        self.assertFalse(WalletTransaction.objects.exists())

    def test_drift_is_detected(self):
        ledger.credit(self.wallet.id, 200)
        Wallet.objects.filter(pk=self.wallet.pk).update(balance=150)
        rec = ledger.reconcile_wallet(self.wallet)
        self.assertFalse(rec.ok)
        self.assertEqual(rec.drift, -50)


class ReconcileWalletsCommandTest(TestCase):
    def setUp(self):
        self.company = Company.objects.create(name="ACME")
        self.wallet = Wallet.objects.create(company=self.company)
        ledger.credit(self.wallet.id, 300)

    def test_all_good(self):
        out = StringIO()
        call_command("reconcile_wallets", stdout=out)
        self.assertIn("all wallets reconciled", out.getvalue())

    def test_drift_fails_and_alerts(self):
        AlertChannel.objects.create(name="oncall", url="https://alerts.example.com", secret="plain:x")
        Wallet.objects.filter(pk=self.wallet.pk).update(balance=999)
        with mock.patch("httpx.Client.post", return_value=mock.Mock(status_code=200, text="ok")):
            with self.assertRaises(CommandError):
                call_command("reconcile_wallets", stdout=StringIO(), stderr=StringIO())
        delivery = AlertDelivery.objects.get()
        self.assertEqual(delivery.event, "billing.ledger_drift")
        self.assertEqual(delivery.payload["data"]["drift"], 699)


class WalletAdminApiTest(TestCase):
    def setUp(self):
        self.company = Company.objects.create(name="ACME")
        self.wallet = Wallet.objects.create(company=self.company)
        admin = get_user_model().objects.create_superuser("root", "root@example.com", "pw")
        self.client = Client()
        self.client.force_login(admin)

    def test_credit_and_reconcile(self):
        base = f"/api/v1/admin/wallets/{self.wallet.id}"
        resp = self.client.post(f"{base}/credit/", data={"amount_cents": 2500, "reference_id": "pi_9"},
                                content_type="application/json")
        self.assertEqual(resp.status_code, 201, resp.content)
        self.assertEqual(resp.json()["wallet"]["balance"], 2500)
        self.assertEqual(resp.json()["transaction"]["type"], "topup")

        resp = self.client.get(f"{base}/reconcile/")
        self.assertEqual(resp.json()["ok"], True)
        resp = self.client.get(f"{base}/transactions/")
        self.assertEqual(len(resp.json()), 1)

    def test_credit_rejects_usage_type(self):
        resp = self.client.post(f"/api/v1/admin/wallets/{self.wallet.id}/credit/",
                                data={"amount_cents": 10, "type": "usage"}, content_type="application/json")
        self.assertEqual(resp.status_code, 400)

    def test_list_by_company(self):
        resp = self.client.get(f"/api/v1/admin/wallets/?company_id={self.company.id}")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([w["id"] for w in resp.json()], [self.wallet.id])

from datetime import timedelta
from decimal import Decimal
from unittest import mock

from django.test import TestCase
from django.utils import timezone

from alerts.models import AlertChannel, AlertDelivery
from billing.models import Subscription, UsagePeriod, Wallet, WalletTransaction
from billing.services.ledger import credit, reconcile_wallet
from calls.models import Call, DeclinedCall
from calls.tasks import settle_call_task
from tenants.models import Company, Plan
from usage.models import UsageLog
from usage.services.metering import billable_minutes, meter_call, overage_cost_cents


class BillableMinutesTest(TestCase):
    def test_ceiling(self):
        self.assertEqual(billable_minutes(0), 0)
        self.assertEqual(billable_minutes(1), 1)
        self.assertEqual(billable_minutes(60), 1)
        self.assertEqual(billable_minutes(300), 5)
        self.assertEqual(billable_minutes(301), 6)

    def test_overage_cost(self):
        self.assertEqual(overage_cost_cents(3, Decimal("0.35")), 105)
        self.assertEqual(overage_cost_cents(1, Decimal("0.333")), 34)


class MeterCallTest(TestCase):
    def setUp(self):
        self.company = Company.objects.create(name="ACME")
        self.starter = Plan.objects.create(name="Starter", slug="starter", voice_minutes=240)
        self.now = timezone.now()

    def _subscribe(self, plan, used=0):
        sub = Subscription.objects.create(company=self.company, plan=plan)
        period = UsagePeriod.objects.create(subscription=sub, period_start=self.now - timedelta(days=3),
                                            period_end=self.now + timedelta(days=27), voice_minutes_used=used)
        return sub, period

    def _wallet(self, balance):
        wallet = Wallet.objects.create(company=self.company, balance=0)
        if balance:
            credit(wallet.id, balance, reference_id="seed", description="initial top-up")
        return wallet

    def _call(self, seconds, call_id="call_1"):
        return Call.objects.create(provider_call_id=call_id, company=self.company, duration_seconds=seconds,
                                   lifecycle_state=Call.STATE_RESOLVED)

    def test_usage_within_allowance(self):
        plan = Plan.objects.create(name="Pro", slug="professional", voice_minutes=600)
        _, period = self._subscribe(plan)
        wallet = self._wallet(1000)

        result = meter_call(self._call(300))

        period.refresh_from_db()
        wallet.refresh_from_db()
        self.assertEqual(period.voice_minutes_used, 5)
        self.assertEqual(wallet.balance, 1000)
        self.assertEqual(result.overage_minutes, 0)
        self.assertFalse(WalletTransaction.objects.filter(type=WalletTransaction.TYPE_USAGE).exists())
        log = UsageLog.objects.get(reference_id="call_1")
        self.assertEqual(log.quantity, 5)
        self.assertEqual(log.cost_cents, 0)

    def test_overage_is_debited(self):
        _, period = self._subscribe(self.starter, used=238)
        wallet = self._wallet(1000)

        result = meter_call(self._call(300))

        period.refresh_from_db()
        wallet.refresh_from_db()
        self.assertEqual(period.voice_minutes_used, 243)
        self.assertEqual(result.covered_minutes, 2)
        self.assertEqual(result.overage_minutes, 3)
        self.assertEqual(result.cost_cents, 105)
        self.assertEqual(wallet.balance, 895)
        tx = WalletTransaction.objects.get(type=WalletTransaction.TYPE_USAGE)
        self.assertEqual(tx.amount, -105)
        self.assertEqual(tx.reference_id, "call_1")
        self.assertIn("starter", tx.description)
        log = UsageLog.objects.get(reference_id="call_1")
        self.assertEqual(log.meta["overage_minutes"], 3)
        self.assertEqual(log.meta["duration_seconds"], 300)
        self.assertEqual(log.meta["plan_id"], "starter")

    def test_pay_as_you_go_without_subscription(self):
        wallet = self._wallet(500)
        result = meter_call(self._call(120))
        wallet.refresh_from_db()
        self.assertEqual(result.overage_minutes, 2)
        self.assertEqual(wallet.balance, 430)
        self.assertIsNone(UsageLog.objects.get().meta["plan_id"])

    def test_no_current_period_bills_everything_as_overage(self):
        Subscription.objects.create(company=self.company, plan=self.starter)
        wallet = self._wallet(500)
        result = meter_call(self._call(60))
        wallet.refresh_from_db()
        self.assertEqual(result.overage_minutes, 1)
        self.assertEqual(wallet.balance, 465)

    def test_rounding_up(self):
        _, period = self._subscribe(self.starter)
        self._wallet(100)
        meter_call(self._call(301))
        period.refresh_from_db()
        self.assertEqual(period.voice_minutes_used, 6)

    def test_unlimited_plan_never_debits(self):
        enterprise = Plan.objects.create(name="Enterprise", slug="enterprise", voice_minutes=None)
        _, period = self._subscribe(enterprise, used=100000)
        wallet = self._wallet(0)
        result = meter_call(self._call(3600 * 5))
        wallet.refresh_from_db()
        period.refresh_from_db()
        self.assertEqual(result.cost_cents, 0)
        self.assertEqual(wallet.balance, 0)
        self.assertEqual(period.voice_minutes_used, 100300)
        self.assertFalse(WalletTransaction.objects.exists())

    def test_duplicate_is_noop(self):
        _, period = self._subscribe(self.starter, used=238)
        wallet = self._wallet(1000)
        call = self._call(300)
        self.assertIsNotNone(meter_call(call))
        self.assertIsNone(meter_call(call))
        period.refresh_from_db()
        wallet.refresh_from_db()
        self.assertEqual(period.voice_minutes_used, 243)
        self.assertEqual(wallet.balance, 895)
        self.assertEqual(UsageLog.objects.count(), 1)

    def test_zero_duration_is_skipped(self):
        _, period = self._subscribe(self.starter)
        call = self._call(0)
        self.assertIsNone(meter_call(call))
        call.refresh_from_db()
        period.refresh_from_db()
        self.assertIsNone(call.billed_at)
        self.assertEqual(period.voice_minutes_used, 0)
        self.assertFalse(UsageLog.objects.exists())

    def test_call_without_company_is_skipped(self):
        call = Call.objects.create(provider_call_id="orphan", duration_seconds=60)
        self.assertIsNone(meter_call(call))
        self.assertFalse(UsageLog.objects.exists())

    def test_declined_call_is_skipped(self):
        _, period = self._subscribe(self.starter, used=240)
        wallet = self._wallet(0)
        DeclinedCall.objects.create(provider_call_id="call_1", company=self.company)
        call = self._call(8)
        self.assertIsNone(meter_call(call))
        call.refresh_from_db()
        period.refresh_from_db()
        wallet.refresh_from_db()
        self.assertIsNone(call.billed_at)
        self.assertEqual(period.voice_minutes_used, 240)
        self.assertEqual(wallet.balance, 0)
        self.assertFalse(UsageLog.objects.exists())

    def test_missing_wallet_is_reported_not_raised(self):
        channel = AlertChannel.objects.create(name="oncall", url="https://alerts.example.com/hook",
                                              secret="plain:s", events=["billing.wallet_missing"])
        with mock.patch("httpx.Client.post", return_value=mock.Mock(status_code=200, text="ok")) as post:
            result = meter_call(self._call(120))
        self.assertTrue(result.wallet_missing)
        self.assertFalse(result.charged)
        self.assertEqual(UsageLog.objects.get().meta["charged"], False)
        post.assert_called_once()
        delivery = AlertDelivery.objects.get()
        self.assertEqual(delivery.channel_id, channel.id)
        self.assertEqual(delivery.event, "billing.wallet_missing")
        self.assertEqual(delivery.payload["data"]["provider_call_id"], "call_1")
        self.assertTrue(delivery.ok)

    def test_company_last_usage_is_touched(self):
        self._wallet(100)
        meter_call(self._call(30))
        self.company.refresh_from_db()
        self.assertIsNotNone(self.company.last_usage_at)

    def test_ledger_stays_reconciled(self):
        _, period = self._subscribe(self.starter, used=239)
        wallet = self._wallet(2000)
        for i in range(4):
            meter_call(self._call(90 + i, call_id=f"call_{i}"))
        rec = reconcile_wallet(wallet)
        self.assertTrue(rec.ok, rec)
        self.assertLess(rec.balance, 2000)


class SettleCallTaskTest(TestCase):
    def setUp(self):
        self.company = Company.objects.create(name="ACME")
        self.wallet = Wallet.objects.create(company=self.company, balance=0)
        credit(self.wallet.id, 500)

    def test_task_meters_call(self):
        Call.objects.create(provider_call_id="c1", company=self.company, duration_seconds=60)
        result = settle_call_task.apply(args=("c1",)).get()
        self.assertEqual(result["cost_cents"], 35)
        self.wallet.refresh_from_db()
        self.assertEqual(self.wallet.balance, 465)

    def test_unknown_call(self):
        self.assertIsNone(settle_call_task.apply(args=("nope",)).get())

    def test_unexpected_failure_raises_alert(self):
        Call.objects.create(provider_call_id="c1", company=self.company, duration_seconds=60)
        AlertChannel.objects.create(name="oncall", url="https://alerts.example.com/hook", secret="plain:s")
        with mock.patch("calls.tasks.meter_call", side_effect=RuntimeError("boom")), \
                mock.patch("httpx.Client.post", return_value=mock.Mock(status_code=200, text="ok")):
            self.assertIsNone(settle_call_task.apply(args=("c1",)).get())
        delivery = AlertDelivery.objects.get()
        self.assertEqual(delivery.event, "billing.settlement_failed")
        self.assertEqual(delivery.payload["data"]["error"], "boom")

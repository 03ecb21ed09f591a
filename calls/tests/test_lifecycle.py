from django.test import TestCase

from calls.models import Call
from calls.services.lifecycle import (
    allowed_prior_states, apply_end_of_call_report, apply_status_update, UNKNOWN_CALLER,
)
from ingress.events import CallRef, EndOfCallReport, StatusUpdate
from tenants.models import Agent, Company, PhoneNumber


def status(call_id, value, number="+1555", customer="+1999"):
    return StatusUpdate(call=CallRef(id=call_id, phone_number=number, customer_number=customer), status=value)


def report(call_id, duration=120, reason="customer-ended-call", transcript=None, summary=None, customer=None):
    return EndOfCallReport(
        call=CallRef(id=call_id, phone_number="+1555", customer_number=customer),
        duration_seconds=duration, ended_reason=reason, transcript=transcript, summary=summary,
        cost_breakdown={"total": 0.1},
    )


class CallLifecycleTest(TestCase):
    def setUp(self):
        self.company = Company.objects.create(name="ACME")
        self.agent = Agent.objects.create(company=self.company, name="Bot", provider_assistant_id="asst_1")
        PhoneNumber.objects.create(company=self.company, agent=self.agent, number="+1555")

    def test_first_status_update_creates_call(self):
        call = apply_status_update(status("c1", "ringing"))
        self.assertEqual(call.lifecycle_state, Call.STATE_RINGING)
        self.assertEqual(call.company_id, self.company.id)
        self.assertEqual(call.agent_id, self.agent.id)
        self.assertEqual(call.caller_number, "+1999")
        self.assertEqual(call.recipient_number, "+1555")
        self.assertEqual(Call.objects.count(), 1)

    def test_progression_and_duplicates(self):
        apply_status_update(status("c1", "queued"))
        apply_status_update(status("c1", "ringing"))
        call = apply_status_update(status("c1", "in-progress"))
        self.assertEqual(call.lifecycle_state, Call.STATE_IN_PROGRESS)
        self.assertIsNotNone(call.started_at)
        # re-livraison et retour arrière ignorés
        apply_status_update(status("c1", "in-progress"))
        call = apply_status_update(status("c1", "ringing"))
        self.assertEqual(call.lifecycle_state, Call.STATE_IN_PROGRESS)
        self.assertEqual(Call.objects.count(), 1)

    def test_terminal_state_never_regresses(self):
        apply_status_update(status("c1", "in-progress"))
        apply_status_update(status("c1", "ended"))
        for value in ("queued", "ringing", "in-progress", "forwarding"):
            call = apply_status_update(status("c1", value))
            self.assertEqual(call.lifecycle_state, Call.STATE_RESOLVED)

    def test_terminal_status_does_not_overwrite_other_terminal(self):
        apply_end_of_call_report(report("c1", reason="assistant-forwarded-call"))
        call = apply_status_update(status("c1", "ended"))
        self.assertEqual(call.lifecycle_state, Call.STATE_ESCALATED)

    def test_failed_status(self):
        call = apply_status_update(status("c1", "failed"))
        self.assertEqual(call.lifecycle_state, Call.STATE_FAILED)
        self.assertIsNotNone(call.ended_at)

    def test_unknown_status_is_ignored(self):
        self.assertIsNone(apply_status_update(status("c1", "voicemail")))
        self.assertFalse(Call.objects.exists())

    def test_unknown_number_still_creates_call(self):
        call = apply_status_update(status("c1", "ringing", number="+1000", customer=None))
        self.assertIsNone(call.company_id)
        self.assertEqual(call.caller_number, UNKNOWN_CALLER)

    def test_end_of_call_report_as_first_event(self):
        call = apply_end_of_call_report(report("c1", duration=301, transcript="I am angry", summary="bad issue"))
        self.assertEqual(call.lifecycle_state, Call.STATE_RESOLVED)
        self.assertEqual(call.duration_seconds, 301)
        self.assertEqual(call.company_id, self.company.id)
        self.assertEqual(call.sentiment, Call.SENTIMENT_NEGATIVE)
        self.assertEqual(call.cost_breakdown, {"total": 0.1})
        self.assertIsNone(call.billed_at)

    def test_end_of_call_report_overwrites_after_terminal_status(self):
        apply_status_update(status("c1", "in-progress"))
        apply_status_update(status("c1", "ended"))
        call = apply_end_of_call_report(report("c1", duration=90, reason="pipeline-error-openai", summary="angry"))
        self.assertEqual(call.lifecycle_state, Call.STATE_FAILED)
        self.assertEqual(call.duration_seconds, 90)
        self.assertEqual(call.priority, Call.PRIORITY_HIGH)
        self.assertEqual(call.caller_number, "+1999")

    def test_end_of_call_report_rewrites_failed_status(self):
        apply_status_update(status("c1", "failed"))
        call = apply_end_of_call_report(report("c1", reason="customer-ended-call"))
        self.assertEqual(call.lifecycle_state, Call.STATE_RESOLVED)

    def test_allowed_prior_states(self):
        self.assertEqual(allowed_prior_states(Call.STATE_PENDING), (Call.STATE_PENDING,))
        self.assertNotIn(Call.STATE_IN_PROGRESS, allowed_prior_states(Call.STATE_RINGING))
        self.assertIn(Call.STATE_RESOLVED, allowed_prior_states(Call.STATE_RESOLVED))
        self.assertNotIn(Call.STATE_FAILED, allowed_prior_states(Call.STATE_RESOLVED))
        self.assertEqual(allowed_prior_states(Call.STATE_IN_PROGRESS),
                         (Call.STATE_PENDING, Call.STATE_RINGING, Call.STATE_IN_PROGRESS))

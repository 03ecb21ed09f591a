from django.test import SimpleTestCase

from calls.models import Call
from calls.services.classifier import classify_sentiment, priority_for, resolution_from_ended_reason


class ClassifierTest(SimpleTestCase):
    def test_sentiment(self):
        self.assertEqual(classify_sentiment("Thanks, great service", None), Call.SENTIMENT_POSITIVE)
        self.assertEqual(classify_sentiment("I am frustrated", "complaint filed"), Call.SENTIMENT_NEGATIVE)
        self.assertEqual(classify_sentiment("", None), Call.SENTIMENT_NEUTRAL)
        # 1-1 => neutre
        self.assertEqual(classify_sentiment("good but bad"), Call.SENTIMENT_NEUTRAL)

    def test_each_word_counts_once(self):
        self.assertEqual(classify_sentiment("good good good", "bad angry"), Call.SENTIMENT_NEGATIVE)

    def test_case_insensitive_substring(self):
        self.assertEqual(classify_sentiment("WONDERFUL"), Call.SENTIMENT_POSITIVE)
        self.assertEqual(classify_sentiment("Disappointed"), Call.SENTIMENT_NEGATIVE)

    def test_resolution(self):
        self.assertEqual(resolution_from_ended_reason("assistant-forwarded-call"), Call.STATE_ESCALATED)
        self.assertEqual(resolution_from_ended_reason("call.transfer"), Call.STATE_ESCALATED)
        self.assertEqual(resolution_from_ended_reason("pipeline-error-openai"), Call.STATE_FAILED)
        self.assertEqual(resolution_from_ended_reason("customer-ended-call"), Call.STATE_RESOLVED)
        self.assertEqual(resolution_from_ended_reason(None), Call.STATE_RESOLVED)

    def test_priority(self):
        self.assertEqual(priority_for(Call.STATE_ESCALATED, Call.SENTIMENT_POSITIVE), Call.PRIORITY_HIGH)
        self.assertEqual(priority_for(Call.STATE_FAILED, Call.SENTIMENT_NEGATIVE), Call.PRIORITY_HIGH)
        self.assertEqual(priority_for(Call.STATE_FAILED, Call.SENTIMENT_NEUTRAL), Call.PRIORITY_MEDIUM)
        self.assertEqual(priority_for(Call.STATE_RESOLVED, Call.SENTIMENT_NEGATIVE), Call.PRIORITY_MEDIUM)

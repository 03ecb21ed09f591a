from calls.models import Call

POSITIVE_WORDS = ("thank", "great", "excellent", "good", "happy", "satisfied", "appreciate", "wonderful")
NEGATIVE_WORDS = ("angry", "frustrated", "terrible", "bad", "disappointed", "unhappy", "complaint", "issue")

ESCALATION_MARKERS = ("transfer", "escalate", "forward")
FAILURE_MARKERS = ("error", "failed")


def classify_sentiment(*texts: str | None) -> str:
    """
    Heuristique par mots-clés sur transcript + résumé (sous-chaîne, insensible à la casse).
    Chaque mot de liste compte au plus une fois; égalité (y compris 0-0) => neutral.
    """
    text = " ".join(t for t in texts if t).lower()
    positive = sum(1 for w in POSITIVE_WORDS if w in text)
    negative = sum(1 for w in NEGATIVE_WORDS if w in text)
    if positive > negative:
        return Call.SENTIMENT_POSITIVE
    if negative > positive:
        return Call.SENTIMENT_NEGATIVE
    return Call.SENTIMENT_NEUTRAL


def resolution_from_ended_reason(ended_reason: str | None) -> str:
    reason = (ended_reason or "").lower()
    if any(m in reason for m in ESCALATION_MARKERS):
        return Call.STATE_ESCALATED
    if any(m in reason for m in FAILURE_MARKERS):
        return Call.STATE_FAILED
    return Call.STATE_RESOLVED


def priority_for(state: str, sentiment: str) -> str:
    if state == Call.STATE_ESCALATED:
        return Call.PRIORITY_HIGH
    if state == Call.STATE_FAILED and sentiment == Call.SENTIMENT_NEGATIVE:
        return Call.PRIORITY_HIGH
    return Call.PRIORITY_MEDIUM

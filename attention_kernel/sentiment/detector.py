"""
Negative sentiment detection over client communications.

A fixed phrase list, matched case-insensitively as substrings against the
most recent inbound messages first.
"""

from typing import Iterable, Optional

from attention_kernel.models.attention import SentimentMatch
from attention_kernel.models.records import Email
from attention_kernel.timing.clock import timestamp_or_epoch

# Order matters: the first phrase found in a message is the one reported.
NEGATIVE_KEYWORDS = (
    "disappointed",
    "frustrated",
    "unhappy",
    "unacceptable",
    "dissatisfied",
    "complaint",
    "unprofessional",
    "poor service",
    "not happy",
    "very upset",
    "terrible",
    "horrible",
    "awful",
    "disgusted",
    "angry",
    "furious",
    "fed up",
    "sick of",
    "had enough",
    "this is ridiculous",
    "this is unacceptable",
    "extremely poor",
    "very disappointed",
    "very frustrated",
    "still waiting",
    "no response",
    "why hasn't",
    "ridiculous",
    "please explain",
    "call me immediately",
)


def inbound_newest_first(emails: Iterable[Email]) -> list:
    """Inbound messages, most recent first. Undated messages sort last."""
    inbound = [e for e in emails if not e.is_outbound]
    return sorted(inbound, key=lambda e: timestamp_or_epoch(e.timestamp), reverse=True)


def match_keyword(text: str) -> Optional[str]:
    lowered = (text or "").lower()
    for keyword in NEGATIVE_KEYWORDS:
        if keyword in lowered:
            return keyword
    return None


def detect_negative_sentiment(emails: Optional[Iterable[Email]]) -> Optional[SentimentMatch]:
    """Return the newest inbound message containing a complaint phrase, if any."""
    if not emails:
        return None

    for email in inbound_newest_first(emails):
        keyword = match_keyword(email.text)
        if keyword:
            return SentimentMatch(
                timestamp=email.timestamp,
                matched_keyword=keyword,
                email_id=email.id,
            )
    return None

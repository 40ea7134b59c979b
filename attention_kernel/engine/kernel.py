"""
Attention Engine — what needs attention on this project, right now.

Behavioral Contract:
- Accepts one ProjectSnapshot (or the equivalent dict) and an evaluation time
- Returns at most max_items AttentionItems, unique by reason code, ordered by
  priority then sort weight
- Pure: the same snapshot at the same instant always yields the same list
- Never stores results; they are recomputed whenever the page asks
"""

import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Union

from attention_kernel.models.attention import (
    AttentionItem,
    AttentionSummary,
    Category,
    Priority,
    ReasonCode,
    RuleSpec,
)
from attention_kernel.models.config import AttentionConfig
from attention_kernel.models.records import ProjectSnapshot
from attention_kernel.resolver.resolve import resolve
from attention_kernel.rules.evaluator import RuleEvaluator
from attention_kernel.timing.clock import as_utc

logger = logging.getLogger(__name__)


RULE_CATALOG = (
    RuleSpec(
        reason_code=ReasonCode.CLIENT_NOT_CONFIRMED_UPCOMING_JOB,
        title="Client not confirmed, job within 24 hours",
        default_priority=Priority.CRITICAL,
        category=Category.OPS,
        deep_link_tab="overview",
    ),
    RuleSpec(
        reason_code=ReasonCode.DEPOSIT_MISSING_AFTER_ACCEPTED_QUOTE,
        title="Deposit missing after quote accepted",
        default_priority=Priority.HIGH,
        category=Category.FINANCE,
        deep_link_tab="invoices",
    ),
    RuleSpec(
        reason_code=ReasonCode.INVOICE_OVERDUE,
        title="Invoice overdue",
        default_priority=Priority.MEDIUM,
        category=Category.FINANCE,
        deep_link_tab="invoices",
        escalates_to=Priority.HIGH,
        per_record=True,
    ),
    RuleSpec(
        reason_code=ReasonCode.INSTALL_SCHEDULED_PARTS_NOT_READY,
        title="Install scheduled but parts not ready",
        default_priority=Priority.HIGH,
        category=Category.OPS,
        deep_link_tab="parts",
    ),
    RuleSpec(
        reason_code=ReasonCode.INSTALL_REQUIREMENTS_INCOMPLETE,
        title="Install requirements incomplete",
        default_priority=Priority.HIGH,
        category=Category.REQUIREMENTS,
        deep_link_tab="requirements",
    ),
    RuleSpec(
        reason_code=ReasonCode.THIRD_PARTY_TRADE_NOT_BOOKED,
        title="Required third-party trade not booked",
        default_priority=Priority.HIGH,
        category=Category.REQUIREMENTS,
        deep_link_tab="requirements",
    ),
    RuleSpec(
        reason_code=ReasonCode.VISIT_OVERDUE_NOT_COMPLETED,
        title="Visit overdue and not completed",
        default_priority=Priority.MEDIUM,
        category=Category.OPS,
        deep_link_tab="requirements",
        per_record=True,
    ),
    RuleSpec(
        reason_code=ReasonCode.PO_ETA_MISSED,
        title="Purchase order ETA missed",
        default_priority=Priority.MEDIUM,
        category=Category.OPS,
        deep_link_tab="parts",
        per_record=True,
    ),
    RuleSpec(
        reason_code=ReasonCode.CLIENT_EMAIL_AWAITING_RESPONSE,
        title="Client email awaiting response",
        default_priority=Priority.MEDIUM,
        category=Category.COMMS,
        deep_link_tab="activity",
    ),
    RuleSpec(
        reason_code=ReasonCode.NEGATIVE_CLIENT_SENTIMENT,
        title="Negative client sentiment",
        default_priority=Priority.MEDIUM,
        category=Category.COMMS,
        deep_link_tab="activity",
        escalates_to=Priority.HIGH,
    ),
)


def _as_snapshot(snapshot: Union[ProjectSnapshot, dict, None]) -> ProjectSnapshot:
    if snapshot is None:
        return ProjectSnapshot()
    if isinstance(snapshot, ProjectSnapshot):
        return snapshot
    return ProjectSnapshot.model_validate(snapshot)


def _current_time(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    return as_utc(now)


class AttentionEngine:
    """Evaluates the attention rules and resolves the findings."""

    def __init__(self, config: Optional[AttentionConfig] = None):
        self.config = config or AttentionConfig()
        self.evaluator = RuleEvaluator(self.config)

    def compute(
        self,
        snapshot: Union[ProjectSnapshot, dict, None],
        now: Optional[datetime] = None,
    ) -> List[AttentionItem]:
        """
        Compute the attention items for a project snapshot.

        `now` defaults to the current UTC time; pass it explicitly for a
        reproducible result. Naive datetimes are read as UTC.
        """
        snapshot = _as_snapshot(snapshot)
        if snapshot.project is None:
            return []

        current_time = _current_time(now)
        findings = self.evaluator.evaluate(snapshot, current_time)
        items = resolve(findings, self.config.max_items)
        logger.debug(
            "attention: %d findings resolved to %d items",
            len(findings), len(items),
        )
        return items


def compute_attention_items(
    snapshot: Union[ProjectSnapshot, dict, None],
    now: Optional[datetime] = None,
    config: Optional[AttentionConfig] = None,
) -> List[AttentionItem]:
    """Module-level entry point; see AttentionEngine.compute."""
    return AttentionEngine(config).compute(snapshot, now)


def summarize_attention(items: Iterable[AttentionItem]) -> AttentionSummary:
    """Count items the way the project attention panel badges them."""
    items = list(items)
    by_category = Counter(item.category.value for item in items)
    return AttentionSummary(
        total=len(items),
        high_count=sum(
            1 for item in items if item.priority in (Priority.CRITICAL, Priority.HIGH)
        ),
        medium_count=sum(1 for item in items if item.priority == Priority.MEDIUM),
        by_category=dict(by_category),
    )

"""
Rule Evaluator — derives attention findings from a project snapshot.

Behavioral Contract:
- Runs every rule, always, in the order R0, A, B, C, D, D2, E, F, G, H
- Appends to a single findings list; later rules may read earlier findings
  (rule H escalates on A/B/E)
- Never raises on malformed records; a record that cannot be read simply
  does not trigger
- Returns findings unresolved: duplicates by reason code are expected and
  left for the resolver
"""

import logging
import re
from datetime import datetime
from typing import Callable, Dict, List, Optional

from attention_kernel.models.attention import (
    AttentionItem,
    Category,
    Priority,
    ReasonCode,
)
from attention_kernel.models.config import AttentionConfig
from attention_kernel.models.records import Part, Project, ProjectSnapshot, PurchaseOrder
from attention_kernel.sentiment.detector import detect_negative_sentiment, inbound_newest_first
from attention_kernel.timing.clock import (
    EPOCH,
    as_utc,
    days_since,
    hours_until,
    parse_timestamp,
    round_half_up,
)

logger = logging.getLogger(__name__)

CLOSED_JOB_STATUSES = frozenset({"Completed", "Cancelled"})
CLOSED_PO_STATUSES = frozenset({"received", "completed"})
ACCEPTED_QUOTE_STATUSES = frozenset({"Accepted", "accepted"})

INSTALL_PROJECT_TYPES = frozenset({
    "Garage Door Install",
    "Gate Install",
    "Roller Shutter Install",
    "Multiple",
})

# Parts (or their purchase orders) in one of these states are on hand.
READY_STATUSES = frozenset({
    "received",
    "in_vehicle",
    "in_storage",
    "in_loading_bay",
    "reserved",
    "available",
    "installed",
    "ready",
    "instorage",
    "invehicle",
    "inloadingbay",
})

# Not shortages at all: the part is gone or already fitted.
EXCLUDED_PART_STATUSES = frozenset({"cancelled", "installed"})

ESCALATING_REASONS = frozenset({
    ReasonCode.INVOICE_OVERDUE,
    ReasonCode.VISIT_OVERDUE_NOT_COMPLETED,
    ReasonCode.DEPOSIT_MISSING_AFTER_ACCEPTED_QUOTE,
})

_SEPARATORS = re.compile(r"[\s_-]")


def normalize_status(status: Optional[str]) -> str:
    """Lower-case a free-form status and strip spaces, hyphens and underscores."""
    return _SEPARATORS.sub("", (status or "").lower())


def is_ready_status(status: Optional[str]) -> bool:
    """Check both the raw and the normalized form against READY_STATUSES."""
    return status in READY_STATUSES or normalize_status(status) in READY_STATUSES


def _job_is_open(job) -> bool:
    return job.status not in CLOSED_JOB_STATUSES


def _part_is_ready(part: Part, orders_by_id: Dict[object, PurchaseOrder]) -> bool:
    """
    Classify a part for the parts-readiness check.

    A linked purchase order's status wins over the part's own status. Parts
    with a received quantity count as ready whatever their status says.
    """
    if part.purchase_order_id:
        order = orders_by_id.get(part.purchase_order_id)
        if order is not None and is_ready_status(order.status):
            return True

    if is_ready_status(part.status):
        return True

    received = part.received_qty or part.quantity_received or 0
    return received > 0


def _has_reply_after(snapshot: ProjectSnapshot, moment: Optional[datetime]) -> bool:
    """True if an outbound email or a manual log is strictly later than moment."""
    if moment is None:
        return False
    for email in snapshot.emails:
        if email.is_outbound and (parse_timestamp(email.timestamp) or EPOCH) > moment:
            return True
    for log in snapshot.manual_logs:
        if (parse_timestamp(log.timestamp) or EPOCH) > moment:
            return True
    return False


class RuleEvaluator:
    """
    Evaluates the attention rules against one project snapshot.

    Rules are bound methods called in a fixed order. Each receives the
    snapshot, the evaluation time and the findings accumulated so far.
    """

    def __init__(self, config: Optional[AttentionConfig] = None):
        self.config = config or AttentionConfig()
        self._rules: List[Callable] = [
            self._check_client_not_confirmed,
            self._check_deposit_missing,
            self._check_invoices_overdue,
            self._check_install_parts_not_ready,
            self._check_install_requirements,
            self._check_trades_not_booked,
            self._check_visits_overdue,
            self._check_po_eta_missed,
            self._check_email_awaiting_response,
            self._check_negative_sentiment,
        ]

    def evaluate(self, snapshot: ProjectSnapshot, now: datetime) -> List[AttentionItem]:
        """Run all rules and return the raw findings in emission order."""
        now = as_utc(now)
        findings: List[AttentionItem] = []
        if snapshot.project is None:
            return findings

        for rule in self._rules:
            before = len(findings)
            rule(snapshot, snapshot.project, now, findings)
            for item in findings[before:]:
                logger.debug(
                    "attention finding %s (%s, %s)",
                    item.id, item.reason_code.value, item.priority.value,
                )
        return findings

    # --- R0: client not confirmed, job imminent ---

    def _check_client_not_confirmed(
        self,
        snapshot: ProjectSnapshot,
        project: Project,
        now: datetime,
        findings: List[AttentionItem],
    ) -> None:
        if project.client_confirmed:
            return

        window = self.config.upcoming_job_window_hours
        upcoming = []
        for job in snapshot.jobs:
            if not job.scheduled_date or not _job_is_open(job):
                continue
            until = hours_until(job.scheduled_date, now)
            if until is not None and 0 <= until <= window:
                upcoming.append((parse_timestamp(job.scheduled_date), job))

        if not upcoming:
            return

        earliest_at, _ = min(upcoming, key=lambda pair: pair[0])
        hours = round_half_up(hours_until(earliest_at, now))
        findings.append(AttentionItem(
            id=ReasonCode.CLIENT_NOT_CONFIRMED_UPCOMING_JOB.value,
            reason_code=ReasonCode.CLIENT_NOT_CONFIRMED_UPCOMING_JOB,
            priority=Priority.CRITICAL,
            category=Category.OPS,
            message=f"Client not confirmed - job in {hours}h",
            deep_link_tab="overview",
        ))

    # --- A: deposit missing after an accepted quote ---

    def _check_deposit_missing(self, snapshot, project, now, findings) -> None:
        if not any(q.status in ACCEPTED_QUOTE_STATUSES for q in snapshot.quotes):
            return

        deposit_paid = any(
            p.payment_status == "Paid" and "deposit" in (p.payment_name or "").lower()
            for p in project.payments
        )
        invoice_paid = any((inv.amount_paid or 0) > 0 for inv in snapshot.invoices)

        if deposit_paid or invoice_paid:
            return

        findings.append(AttentionItem(
            id=ReasonCode.DEPOSIT_MISSING_AFTER_ACCEPTED_QUOTE.value,
            reason_code=ReasonCode.DEPOSIT_MISSING_AFTER_ACCEPTED_QUOTE,
            priority=Priority.HIGH,
            category=Category.FINANCE,
            message="Deposit not received (quote accepted)",
            deep_link_tab="invoices",
        ))

    # --- B: invoices past due ---

    def _check_invoices_overdue(self, snapshot, project, now, findings) -> None:
        threshold = self.config.invoice_high_priority_after_days
        for invoice in snapshot.invoices:
            if invoice.status == "PAID" or not invoice.due_date:
                continue
            due = parse_timestamp(invoice.due_date)
            if due is None or not due < now:
                continue

            days_overdue = days_since(due, now)
            findings.append(AttentionItem(
                id=f"INVOICE_OVERDUE_{invoice.id}",
                reason_code=ReasonCode.INVOICE_OVERDUE,
                priority=Priority.HIGH if days_overdue > threshold else Priority.MEDIUM,
                category=Category.FINANCE,
                message=f"Invoice overdue ({days_overdue} days)",
                deep_link_tab="invoices",
                sort_weight=days_overdue,
            ))

    # --- C: install booked but parts are not on hand ---

    def _check_install_parts_not_ready(self, snapshot, project, now, findings) -> None:
        install_booked = False
        for job in snapshot.jobs:
            job_type = (job.job_type_name or job.job_type or "").lower()
            scheduled = parse_timestamp(job.scheduled_date)
            if "install" in job_type and scheduled is not None and scheduled > now and _job_is_open(job):
                install_booked = True
                break

        if not install_booked:
            return

        orders_by_id = {}
        for order in snapshot.purchase_orders:
            # First order wins on duplicate ids.
            orders_by_id.setdefault(order.id, order)

        short = [
            part for part in snapshot.parts
            if normalize_status(part.status) not in EXCLUDED_PART_STATUSES
            and not _part_is_ready(part, orders_by_id)
        ]
        if not short:
            return

        findings.append(AttentionItem(
            id=ReasonCode.INSTALL_SCHEDULED_PARTS_NOT_READY.value,
            reason_code=ReasonCode.INSTALL_SCHEDULED_PARTS_NOT_READY,
            priority=Priority.HIGH,
            category=Category.OPS,
            message="Install scheduled but parts not ready",
            deep_link_tab="parts",
        ))

    # --- D: install project without measurements or door details ---

    def _check_install_requirements(self, snapshot, project, now, findings) -> None:
        if project.project_type not in INSTALL_PROJECT_TYPES:
            return

        doors = project.doors
        if not any(d.height and d.width for d in doors):
            findings.append(AttentionItem(
                id="INSTALL_REQUIREMENTS_MEASUREMENTS",
                reason_code=ReasonCode.INSTALL_REQUIREMENTS_INCOMPLETE,
                priority=Priority.HIGH,
                category=Category.REQUIREMENTS,
                message="Requirements missing: measurements",
                deep_link_tab="requirements",
            ))

        # Shares the reason code above, so at most one of the two survives.
        if not any(d.type or d.style for d in doors):
            findings.append(AttentionItem(
                id="INSTALL_REQUIREMENTS_DOOR_INFO",
                reason_code=ReasonCode.INSTALL_REQUIREMENTS_INCOMPLETE,
                priority=Priority.HIGH,
                category=Category.REQUIREMENTS,
                message="Requirements missing: door information",
                deep_link_tab="requirements",
            ))

    # --- D2: required third-party trades not booked ---

    def _check_trades_not_booked(self, snapshot, project, now, findings) -> None:
        unbooked = [
            t for t in snapshot.trade_requirements
            if t.is_required and not t.is_booked
        ]
        if not unbooked:
            return

        findings.append(AttentionItem(
            id=ReasonCode.THIRD_PARTY_TRADE_NOT_BOOKED.value,
            reason_code=ReasonCode.THIRD_PARTY_TRADE_NOT_BOOKED,
            priority=Priority.HIGH,
            category=Category.REQUIREMENTS,
            message=f"Third-party trade not booked ({len(unbooked)})",
            deep_link_tab="requirements",
        ))

    # --- E: visits in the past that were never closed ---

    def _check_visits_overdue(self, snapshot, project, now, findings) -> None:
        for job in snapshot.jobs:
            if not job.scheduled_date or not _job_is_open(job):
                continue
            scheduled = parse_timestamp(job.scheduled_date)
            if scheduled is None or not scheduled < now:
                continue

            findings.append(AttentionItem(
                id=f"VISIT_OVERDUE_{job.id}",
                reason_code=ReasonCode.VISIT_OVERDUE_NOT_COMPLETED,
                priority=Priority.MEDIUM,
                category=Category.OPS,
                message="Visit overdue: not marked completed",
                deep_link_tab="requirements",
                sort_weight=days_since(scheduled, now),
            ))

    # --- F: purchase orders past their ETA ---

    def _check_po_eta_missed(self, snapshot, project, now, findings) -> None:
        for order in snapshot.purchase_orders:
            if not order.eta_date or order.status in CLOSED_PO_STATUSES:
                continue
            eta = parse_timestamp(order.eta_date)
            if eta is None or not eta < now:
                continue

            reference = order.po_number or order.supplier_name or "Unknown"
            findings.append(AttentionItem(
                id=f"PO_ETA_MISSED_{order.id}",
                reason_code=ReasonCode.PO_ETA_MISSED,
                priority=Priority.MEDIUM,
                category=Category.OPS,
                message=f"PO ETA missed: {reference}",
                deep_link_tab="parts",
                sort_weight=days_since(eta, now),
            ))

    # --- G: latest client email unanswered ---

    def _check_email_awaiting_response(self, snapshot, project, now, findings) -> None:
        inbound = inbound_newest_first(snapshot.emails)
        if not inbound:
            return

        received_at = parse_timestamp(inbound[0].timestamp)
        if received_at is None:
            return
        if _has_reply_after(snapshot, received_at):
            return

        waited_hours = (now - received_at).total_seconds() / 3600
        if waited_hours <= self.config.email_response_sla_hours:
            return

        findings.append(AttentionItem(
            id=ReasonCode.CLIENT_EMAIL_AWAITING_RESPONSE.value,
            reason_code=ReasonCode.CLIENT_EMAIL_AWAITING_RESPONSE,
            priority=Priority.MEDIUM,
            category=Category.COMMS,
            message="Client email awaiting response",
            deep_link_tab="activity",
            sort_weight=int(waited_hours // 24),
        ))

    # --- H: client sounds unhappy and nobody has replied ---

    def _check_negative_sentiment(self, snapshot, project, now, findings) -> None:
        match = detect_negative_sentiment(snapshot.emails)
        if match is None:
            return
        if _has_reply_after(snapshot, parse_timestamp(match.timestamp)):
            return

        escalate = any(item.reason_code in ESCALATING_REASONS for item in findings)
        findings.append(AttentionItem(
            id=ReasonCode.NEGATIVE_CLIENT_SENTIMENT.value,
            reason_code=ReasonCode.NEGATIVE_CLIENT_SENTIMENT,
            priority=Priority.HIGH if escalate else Priority.MEDIUM,
            category=Category.COMMS,
            message="Client frustration detected — follow up required",
            deep_link_tab="activity",
        ))

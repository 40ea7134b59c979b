"""Attention Items — derived, never-stored findings about a project."""

from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from attention_kernel.models.records import RecordId, Timestamp


class Priority(str, Enum):
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class Category(str, Enum):
    OPS = "Ops"
    FINANCE = "Finance"
    REQUIREMENTS = "Requirements"
    COMMS = "Comms"


class ReasonCode(str, Enum):
    CLIENT_NOT_CONFIRMED_UPCOMING_JOB = "CLIENT_NOT_CONFIRMED_UPCOMING_JOB"
    DEPOSIT_MISSING_AFTER_ACCEPTED_QUOTE = "DEPOSIT_MISSING_AFTER_ACCEPTED_QUOTE"
    INVOICE_OVERDUE = "INVOICE_OVERDUE"
    INSTALL_SCHEDULED_PARTS_NOT_READY = "INSTALL_SCHEDULED_PARTS_NOT_READY"
    INSTALL_REQUIREMENTS_INCOMPLETE = "INSTALL_REQUIREMENTS_INCOMPLETE"
    THIRD_PARTY_TRADE_NOT_BOOKED = "THIRD_PARTY_TRADE_NOT_BOOKED"
    VISIT_OVERDUE_NOT_COMPLETED = "VISIT_OVERDUE_NOT_COMPLETED"
    PO_ETA_MISSED = "PO_ETA_MISSED"
    CLIENT_EMAIL_AWAITING_RESPONSE = "CLIENT_EMAIL_AWAITING_RESPONSE"
    NEGATIVE_CLIENT_SENTIMENT = "NEGATIVE_CLIENT_SENTIMENT"


class AttentionItem(BaseModel):
    """
    A single "needs attention" finding for a project.

    Serialized with camelCase keys (reasonCode, deepLinkTab, sortWeight),
    which is what the project page consumes.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    reason_code: ReasonCode = Field(alias="reasonCode")
    priority: Priority
    category: Category
    message: str
    deep_link_tab: str = Field(alias="deepLinkTab")   # overview | invoices | parts | requirements | activity
    sort_weight: Optional[int] = Field(default=None, alias="sortWeight")


class SentimentMatch(BaseModel):
    """The most recent inbound message that reads as a complaint."""

    timestamp: Optional[Timestamp] = None
    matched_keyword: str
    email_id: Optional[RecordId] = None


class AttentionSummary(BaseModel):
    """Badge counts shown on the project attention panel."""

    total: int = 0
    high_count: int = 0         # CRITICAL + HIGH
    medium_count: int = 0
    by_category: Dict[str, int] = {}


class RuleSpec(BaseModel):
    """Catalog entry describing what a reason code means."""

    reason_code: ReasonCode
    title: str
    default_priority: Priority
    category: Category
    deep_link_tab: str
    escalates_to: Optional[Priority] = None
    per_record: bool = False

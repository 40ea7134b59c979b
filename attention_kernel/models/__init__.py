"""Attention Kernel data models."""

from attention_kernel.models.attention import (
    AttentionItem,
    AttentionSummary,
    Category,
    Priority,
    ReasonCode,
    RuleSpec,
    SentimentMatch,
)
from attention_kernel.models.config import AttentionConfig
from attention_kernel.models.records import (
    Door,
    Email,
    Invoice,
    Job,
    ManualLog,
    Part,
    Payment,
    Project,
    ProjectSnapshot,
    PurchaseOrder,
    Quote,
    TradeRequirement,
)

__all__ = [
    "AttentionConfig",
    "AttentionItem",
    "AttentionSummary",
    "Category",
    "Door",
    "Email",
    "Invoice",
    "Job",
    "ManualLog",
    "Part",
    "Payment",
    "Priority",
    "Project",
    "ProjectSnapshot",
    "PurchaseOrder",
    "Quote",
    "ReasonCode",
    "RuleSpec",
    "SentimentMatch",
    "TradeRequirement",
]

"""Project records — the already-fetched collections the engine reads."""

from datetime import datetime
from typing import List, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
)

# Records come from an external store; timestamps may be datetimes or raw
# strings and are parsed lazily by attention_kernel.timing.clock.
Timestamp = Union[datetime, str]
RecordId = Union[str, int]


class Record(BaseModel):
    """
    Base for all external records: every field optional, extras kept.

    A value that cannot be coerced to its field type falls back to the field
    default, so one bad field stops only its own record from triggering a
    rule. Numbers are accepted wherever a string is expected.
    """

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    @field_validator("*", mode="wrap")
    @classmethod
    def _default_on_bad_value(cls, value, handler, info: ValidationInfo):
        try:
            return handler(value)
        except ValidationError:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)


class Door(Record):
    height: Optional[Union[float, str]] = None
    width: Optional[Union[float, str]] = None
    type: Optional[str] = None
    style: Optional[str] = None


class Payment(Record):
    payment_status: Optional[str] = None
    payment_name: Optional[str] = None


class Project(Record):
    id: Optional[RecordId] = None
    client_confirmed: Optional[bool] = None
    project_type: Optional[str] = None
    doors: List[Door] = []
    payments: List[Payment] = []

    @field_validator("doors", "payments", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return [] if value is None else value


class Quote(Record):
    id: Optional[RecordId] = None
    status: Optional[str] = None


class Invoice(Record):
    id: Optional[RecordId] = None
    status: Optional[str] = None
    due_date: Optional[Timestamp] = None
    amount_paid: Optional[float] = None


class Job(Record):
    """A scheduled site visit."""

    id: Optional[RecordId] = None
    job_type_name: Optional[str] = None
    job_type: Optional[str] = None
    scheduled_date: Optional[Timestamp] = None
    status: Optional[str] = None                # Open | Scheduled | Completed | Cancelled


class Part(Record):
    id: Optional[RecordId] = None
    status: Optional[str] = None                # Free-form, see normalize_status
    purchase_order_id: Optional[RecordId] = None
    received_qty: Optional[float] = None
    quantity_received: Optional[float] = None


class PurchaseOrder(Record):
    id: Optional[RecordId] = None
    status: Optional[str] = None
    eta_date: Optional[Timestamp] = None
    po_number: Optional[str] = None
    supplier_name: Optional[str] = None


class Email(Record):
    id: Optional[RecordId] = None
    is_outbound: Optional[bool] = None
    sent_at: Optional[Timestamp] = None
    created_at: Optional[Timestamp] = None
    body_text: Optional[str] = None
    content: Optional[str] = None

    @property
    def timestamp(self) -> Optional[Timestamp]:
        return self.sent_at or self.created_at

    @property
    def text(self) -> str:
        return self.body_text or self.content or ""


class ManualLog(Record):
    """A manually logged call/visit note; counts as a reply to the client."""

    id: Optional[RecordId] = None
    created_date: Optional[Timestamp] = None
    created_at: Optional[Timestamp] = None

    @property
    def timestamp(self) -> Optional[Timestamp]:
        return self.created_date or self.created_at


class TradeRequirement(Record):
    id: Optional[RecordId] = None
    is_required: Optional[bool] = None
    is_booked: Optional[bool] = None


class ProjectSnapshot(BaseModel):
    """
    One materialized view of a project and everything attached to it.

    Collections may be given by their snake_case names or by the camelCase
    keys the web client sends (purchaseOrders, manualLogs, tradeRequirements).
    """

    model_config = ConfigDict(populate_by_name=True)

    project: Optional[Project] = None
    quotes: List[Quote] = []
    invoices: List[Invoice] = []
    jobs: List[Job] = []
    parts: List[Part] = []
    purchase_orders: List[PurchaseOrder] = Field(default=[], alias="purchaseOrders")
    emails: List[Email] = []
    manual_logs: List[ManualLog] = Field(default=[], alias="manualLogs")
    trade_requirements: List[TradeRequirement] = Field(default=[], alias="tradeRequirements")

    @field_validator(
        "quotes", "invoices", "jobs", "parts", "purchase_orders",
        "emails", "manual_logs", "trade_requirements",
        mode="before",
    )
    @classmethod
    def _records_only(cls, value):
        if not isinstance(value, (list, tuple)):
            return []
        return [v for v in value if isinstance(v, (dict, BaseModel))]

"""Attention engine configuration."""

from pydantic import BaseModel, Field


class AttentionConfig(BaseModel):
    """Thresholds for the attention rules. Defaults match production behaviour."""

    max_items: int = Field(ge=0, default=6)
    upcoming_job_window_hours: float = Field(ge=0, default=24)
    invoice_high_priority_after_days: int = 7
    email_response_sla_hours: float = Field(ge=0, default=48)

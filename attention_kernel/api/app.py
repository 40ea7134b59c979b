"""
Attention Kernel API — FastAPI endpoints.

Exposes the attention engine over HTTP for:
- Computing attention items for a project snapshot
- Inspecting the rule catalog
- Inspecting the active configuration

The API holds no state: every request carries the full snapshot.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import FastAPI
from pydantic import BaseModel

from attention_kernel.engine.kernel import (
    RULE_CATALOG,
    AttentionEngine,
    summarize_attention,
)
from attention_kernel.models.attention import AttentionSummary
from attention_kernel.models.config import AttentionConfig
from attention_kernel.models.records import ProjectSnapshot

logger = logging.getLogger(__name__)


# --- Request/Response Models ---

class ComputeRequest(BaseModel):
    snapshot: ProjectSnapshot
    now: Optional[datetime] = None


class ComputeResponse(BaseModel):
    items: List[dict]
    summary: AttentionSummary
    evaluated_at: datetime


# --- Application Factory ---

def create_app(
    engine: Optional[AttentionEngine] = None,
    config: Optional[AttentionConfig] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="Attention Kernel API",
        description="Derived project attention items",
        version="0.1.0",
    )

    ae = engine or AttentionEngine(config)
    app.state.attention_engine = ae

    @app.get("/health")
    def health():
        return {"status": "ok"}

    # === ATTENTION ===

    @app.post("/attention/compute", response_model=ComputeResponse)
    def compute_attention(req: ComputeRequest):
        """Compute the attention items for one project snapshot."""
        evaluated_at = req.now or datetime.now(timezone.utc)
        items = ae.compute(req.snapshot, evaluated_at)
        project_id = req.snapshot.project.id if req.snapshot.project else None
        logger.info(
            "computed %d attention items for project %s", len(items), project_id
        )
        return ComputeResponse(
            items=[i.model_dump(mode="json", by_alias=True) for i in items],
            summary=summarize_attention(items),
            evaluated_at=evaluated_at,
        )

    @app.get("/attention/rules")
    def get_rules():
        """The reason codes the engine can emit."""
        return [r.model_dump(mode="json") for r in RULE_CATALOG]

    @app.get("/attention/config")
    def get_config():
        """Current engine configuration."""
        return ae.config.model_dump()

    return app


# Default application instance
app = create_app()

"""
LLM analyses of documents.

status is a plain string: pending, processing, completed. A row that fails
mid-analysis stays in processing.
"""

from datetime import datetime

from sqlalchemy import String, Text, Float, JSON, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from .base import RecordBase


class Analysis(RecordBase):
    __tablename__ = "analyses"

    document_id: Mapped[str] = mapped_column(
        String, ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True
    )
    persona_id: Mapped[str] = mapped_column(
        String, ForeignKey("personas.id", ondelete="SET NULL"), nullable=True
    )
    title: Mapped[str] = mapped_column(String, nullable=True)
    analysis_type: Mapped[str] = mapped_column(String, nullable=False, default="environmental")
    custom_instructions: Mapped[str] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="pending")
    analysis_content: Mapped[str] = mapped_column(Text, nullable=True)
    key_findings: Mapped[list] = mapped_column(JSON, nullable=True, default=list)
    confidence_score: Mapped[float] = mapped_column(Float, nullable=True)
    completed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True)

"""
Semantic-search hits. Append-only log, one row per matched document.
"""

from sqlalchemy import String, Text, Float, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from .base import RecordBase


class SearchResult(RecordBase):
    __tablename__ = "search_results"

    query: Mapped[str] = mapped_column(Text, nullable=False)
    document_id: Mapped[str] = mapped_column(
        String, ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True
    )
    relevance_score: Mapped[float] = mapped_column(Float, nullable=False, default=50)
    matched_content: Mapped[str] = mapped_column(Text, nullable=True)
    persona: Mapped[str] = mapped_column(String, nullable=False, default="general")

"""
Analysis personas — a named system prompt plus display metadata.
"""

from sqlalchemy import String, Text, Boolean, JSON
from sqlalchemy.orm import Mapped, mapped_column

from .base import RecordBase


class Persona(RecordBase):
    __tablename__ = "personas"

    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=True)
    system_prompt: Mapped[str] = mapped_column(Text, nullable=False)
    expertise_areas: Mapped[list] = mapped_column(JSON, nullable=True, default=list)
    avatar_emoji: Mapped[str] = mapped_column(String, nullable=True, default="🔬")
    # Not unique. The UI shows default personas first.
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

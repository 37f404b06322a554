"""
Uploaded documents. Extracted text stored directly on the row.
Raw bytes live in object storage under storage_path.
"""

from sqlalchemy import String, Text, BigInteger
from sqlalchemy.orm import Mapped, mapped_column

from .base import RecordBase


class Document(RecordBase):
    __tablename__ = "documents"

    title: Mapped[str] = mapped_column(String, nullable=False, default="Untitled Document")
    description: Mapped[str] = mapped_column(Text, nullable=True)
    filename: Mapped[str] = mapped_column(String, nullable=False)  # stored name, <uuid>.<ext>
    original_filename: Mapped[str] = mapped_column(String, nullable=True)
    mime_type: Mapped[str] = mapped_column(String, nullable=True)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=True)
    storage_path: Mapped[str] = mapped_column(Text, nullable=True)
    upload_status: Mapped[str] = mapped_column(
        String, nullable=False, default="completed"
    )

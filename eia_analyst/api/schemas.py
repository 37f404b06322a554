"""
Response shapes shared by several routers.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class DocumentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: Optional[str] = None
    filename: str
    original_filename: Optional[str] = None
    mime_type: Optional[str] = None
    file_size: Optional[int] = None
    content: Optional[str] = None
    storage_path: Optional[str] = None
    upload_status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AnalysisOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    document_id: str
    persona_id: Optional[str] = None
    title: Optional[str] = None
    analysis_type: str
    custom_instructions: Optional[str] = None
    status: str
    analysis_content: Optional[str] = None
    key_findings: list[str] = []
    confidence_score: Optional[float] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("key_findings", mode="before")
    @classmethod
    def _none_to_list(cls, v):
        return v or []


class PersonaOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: Optional[str] = None
    system_prompt: str
    expertise_areas: list[str] = []
    avatar_emoji: Optional[str] = None
    is_default: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("expertise_areas", mode="before")
    @classmethod
    def _none_to_list(cls, v):
        return v or []

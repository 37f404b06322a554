"""
Persona API.

POST   /v1/generate-persona  — Draft a persona from a description (not saved)
GET    /v1/personas          — All personas, defaults first
POST   /v1/personas          — Create a persona
GET    /v1/personas/{id}     — One persona
PATCH  /v1/personas/{id}     — Partial update
DELETE /v1/personas/{id}     — Delete (analyses keep running with persona_id NULL)
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import get_db
from ..models.persona import Persona
from ..services.persona_generation import generate_persona
from .schemas import PersonaOut

logger = logging.getLogger(__name__)

personas_router = APIRouter(tags=["personas"])


class GeneratePersonaRequest(BaseModel):
    description: str = ""


@personas_router.post("/generate-persona")
async def generate_persona_endpoint(request: GeneratePersonaRequest):
    """Ask Gemini for {name, system_prompt, expertise_areas, avatar_emoji}."""
    persona = await generate_persona(request.description)
    return {"success": True, **persona}


# ── CRUD ─────────────────────────────────────────────────────────────

class PersonaCreate(BaseModel):
    name: str
    system_prompt: str
    description: Optional[str] = None
    expertise_areas: list[str] = []
    avatar_emoji: Optional[str] = "🔬"
    is_default: bool = False


class PersonaUpdate(BaseModel):
    name: Optional[str] = None
    system_prompt: Optional[str] = None
    description: Optional[str] = None
    expertise_areas: Optional[list[str]] = None
    avatar_emoji: Optional[str] = None
    is_default: Optional[bool] = None


async def _get_or_404(db: AsyncSession, persona_id: str) -> Persona:
    persona = await db.get(Persona, persona_id)
    if not persona:
        raise HTTPException(status_code=404, detail="Persona not found")
    return persona


@personas_router.get("/personas", response_model=list[PersonaOut])
async def list_personas(db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(Persona).order_by(Persona.is_default.desc(), Persona.created_at.desc())
    )
    return [PersonaOut.model_validate(p) for p in result.scalars().all()]


@personas_router.post("/personas", response_model=PersonaOut)
async def create_persona(
    request: PersonaCreate,
    db: AsyncSession = Depends(get_db),
):
    persona = Persona(**request.model_dump())
    db.add(persona)
    await db.flush()
    logger.info("Persona created: %s (%s)", persona.name, persona.id)
    return PersonaOut.model_validate(persona)


@personas_router.get("/personas/{persona_id}", response_model=PersonaOut)
async def get_persona(
    persona_id: str,
    db: AsyncSession = Depends(get_db),
):
    return PersonaOut.model_validate(await _get_or_404(db, persona_id))


@personas_router.patch("/personas/{persona_id}", response_model=PersonaOut)
async def update_persona(
    persona_id: str,
    request: PersonaUpdate,
    db: AsyncSession = Depends(get_db),
):
    persona = await _get_or_404(db, persona_id)
    for field, value in request.model_dump(exclude_unset=True).items():
        setattr(persona, field, value)
    await db.flush()
    await db.refresh(persona)
    return PersonaOut.model_validate(persona)


@personas_router.delete("/personas/{persona_id}")
async def delete_persona(
    persona_id: str,
    db: AsyncSession = Depends(get_db),
):
    persona = await _get_or_404(db, persona_id)
    await db.delete(persona)
    logger.info("Persona deleted: %s", persona_id)
    return {"status": "deleted", "id": persona_id}

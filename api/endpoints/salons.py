from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException

from db.database import get_database
from repositories.professionals import ProfessionalRepository
from repositories.salons import SalonRepository
from schemas.base import to_jsonable


router = APIRouter(tags=["salons"])


@router.get("/salons")
async def list_salons() -> List[Dict[str, Any]]:
    db = await get_database()
    salons = await SalonRepository(db).find_approved()
    return to_jsonable(salons)


@router.get("/salons/{salon_id}")
async def get_salon(salon_id: str) -> Dict[str, Any]:
    db = await get_database()
    repo = SalonRepository(db)
    oid = repo.parse_object_id(salon_id)
    salon = await repo.find_approved_by_id(oid) if oid is not None else None
    if not salon:
        raise HTTPException(status_code=404, detail="Salon not found")
    return to_jsonable(salon)


@router.get("/professionals/salon/{salon_id}")
async def list_salon_professionals(salon_id: str) -> List[Dict[str, Any]]:
    db = await get_database()
    repo = ProfessionalRepository(db)
    oid = repo.parse_object_id(salon_id)
    if oid is None:
        return []
    return to_jsonable(await repo.find_by_salon(oid))


@router.get("/professionals/{professional_id}")
async def get_professional(professional_id: str) -> Dict[str, Any]:
    db = await get_database()
    repo = ProfessionalRepository(db)
    oid = repo.parse_object_id(professional_id)
    professional = await repo.find_by_id(oid) if oid is not None else None
    # Never fall back to treating the id as a salon id
    if not professional:
        raise HTTPException(status_code=404, detail="Professional not found")
    return to_jsonable(professional)

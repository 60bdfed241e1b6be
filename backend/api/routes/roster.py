from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.database import get_db
from schemas.roster import HallOut, StaffOut
from services import roster


staff_router = APIRouter()
halls_router = APIRouter()


@staff_router.get("/", response_model=list[StaffOut])
def list_staff(db: Session = Depends(get_db)) -> list[StaffOut]:
    return roster.list_staff(db)


@halls_router.get("/", response_model=list[HallOut])
def list_halls(db: Session = Depends(get_db)) -> list[HallOut]:
    return roster.list_halls(db)


@halls_router.get("/blocks", response_model=list[str])
def list_blocks(db: Session = Depends(get_db)) -> list[str]:
    return roster.list_blocks(db)

from __future__ import annotations

from fastapi import APIRouter

from api.routes import allocation, assignments, roster


api_router = APIRouter()
api_router.include_router(allocation.router, prefix="/allocation", tags=["allocation"])
api_router.include_router(assignments.router, prefix="/assignments", tags=["assignments"])
api_router.include_router(roster.staff_router, prefix="/staff", tags=["roster"])
api_router.include_router(roster.halls_router, prefix="/halls", tags=["roster"])

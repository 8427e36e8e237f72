from __future__ import annotations

from fastapi import APIRouter

from api.endpoints import appointments as appointment_endpoints
from api.endpoints import timeslots as timeslot_endpoints
from api.endpoints import salons as salon_endpoints


api_router = APIRouter()

api_router.include_router(appointment_endpoints.router)
api_router.include_router(timeslot_endpoints.router)
api_router.include_router(salon_endpoints.router)

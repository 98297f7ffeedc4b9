from fastapi import APIRouter

from app.api.v1.endpoints import freight_slips, pilotage, transport_slips

api_router = APIRouter()

# Registering specialized controllers
api_router.include_router(transport_slips.router, prefix="/transport-slips", tags=["Transport"])
api_router.include_router(freight_slips.router, prefix="/freight-slips", tags=["Freight"])
api_router.include_router(pilotage.router, prefix="/pilotage", tags=["Pilotage"])

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routers.clients import router as clients_router
from app.api.routers.mail import router as mail_router
from app.api.routers.settings import router as settings_router
from app.api.routers.slip_numbers import router as slip_numbers_router
from app.api.routers.supplier import router as supplier_router
from app.api.routers.users import router as users_router
from app.api.routers.vehicles import router as vehicles_router
from app.core.config import settings

from app.api.v1.endpoints.api import api_router

app = FastAPI(title="SLIPDESK API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS.split(",") if settings.CORS_ALLOW_ORIGINS else ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(users_router)
app.include_router(clients_router)
app.include_router(supplier_router)
app.include_router(vehicles_router)
app.include_router(settings_router)
app.include_router(mail_router)
app.include_router(slip_numbers_router)

app.include_router(api_router, prefix="/api/v1")

@app.get("/health")
def health():
    return {"status": "up"}

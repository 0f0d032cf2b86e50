from fastapi import FastAPI, Depends
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncSession
from contextlib import asynccontextmanager
import logging
import os

from . import crud, schemas, database, models
from .errors import register_error_handlers
from .routers import clients, proformas
from proforma_common.security import get_current_user, UserPayload

# Configuración de Logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("proforma-service")

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:4200").split(",")
    if origin.strip()
]

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Crear tablas al inicio (en producción manda Alembic)
    async with database.engine.begin() as conn:
        await conn.run_sync(models.Base.metadata.create_all)
    logger.info("🚀 Proforma Service iniciado")
    yield
    await database.engine.dispose()

app = FastAPI(
    title="Proforma Service",
    description="Servicio de Clientes y Proformas: numeración por usuario, totales con IVA y PDF.",
    version="1.0.0",
    root_path="/api/proformas",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Routers
app.include_router(clients.router)
app.include_router(proformas.router)

# --- ENDPOINTS GENERALES ---

@app.get("/health")
def health_check():
    """Health check para Kubernetes/Docker."""
    return {"status": "ok"}

# --- REPORTES ---

@app.get("/dashboard/stats", response_model=schemas.DashboardStats)
async def read_dashboard_stats(
    db: AsyncSession = Depends(database.get_db),
    user: UserPayload = Depends(get_current_user)
):
    """Clientes activos y proformas emitidas en el mes en curso."""
    return await crud.get_dashboard_stats(db, user.user_id)

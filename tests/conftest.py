import os

# Debe definirse antes de importar el servicio (el engine se crea al importar)
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENV_MODE", "test")
os.environ.setdefault("JWT_SECRET_KEY", "clave-de-pruebas")

from datetime import date

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from proforma_common.security import create_access_token
from proforma_service import crud, database, models, schemas
from proforma_service.main import app

USER_ID = 1
OTHER_USER_ID = 2


@pytest.fixture
async def engine(tmp_path):
    # Archivo (no memoria) para que varias conexiones vean los mismos datos
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'proformas.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(models.Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[database.get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http
    app.dependency_overrides.clear()


def auth_headers(user_id: int = USER_ID) -> dict:
    token = create_access_token({"sub": f"user{user_id}@example.com", "user_id": user_id})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers():
    return auth_headers(USER_ID)


@pytest.fixture
def other_headers():
    return auth_headers(OTHER_USER_ID)


def client_data(**overrides) -> schemas.ClientCreate:
    data = {
        "first_name": "María",
        "last_name": "Pérez",
        "cedula_ruc": "0102030405",
        "email": "maria@example.com",
        "phone": "0999999999",
        "address": "Av. Solano y Remigio Tamariz",
    }
    data.update(overrides)
    return schemas.ClientCreate(**data)


def proforma_data(client_id: int, items=None, **overrides) -> schemas.ProformaCreate:
    data = {
        "client_id": client_id,
        "date": date(2026, 10, 1),
        "iva_percentage": 15,
        "items": items or [
            {"description": "Mueble de cocina", "unit": "u", "quantity": 2, "unit_cost": 10, "percentage_gain": 50},
        ],
    }
    data.update(overrides)
    return schemas.ProformaCreate(**data)


@pytest.fixture
async def sample_client(db):
    return await crud.create_client(db, client_data(), USER_ID)

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from .. import crud, schemas
from ..database import get_db
from proforma_common.security import get_current_user, UserPayload

router = APIRouter(prefix="/clients", tags=["Clients"])

@router.get("", response_model=schemas.PaginatedResponse[schemas.ClientResponse])
async def read_clients(
    page: int = 1,
    limit: int = crud.PAGE_SIZE,
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    user: UserPayload = Depends(get_current_user)
):
    """Lista los clientes activos con búsqueda por nombre o Cédula/RUC."""
    return await crud.get_clients(db, user.user_id, page=page, limit=limit, search=search)

@router.post("", response_model=schemas.ClientResponse, status_code=201)
async def create_client(
    client: schemas.ClientCreate,
    db: AsyncSession = Depends(get_db),
    user: UserPayload = Depends(get_current_user)
):
    """Registra un nuevo cliente. La Cédula/RUC no puede repetirse."""
    return await crud.create_client(db, client, user.user_id)

@router.get("/{client_id}", response_model=schemas.ClientResponse)
async def read_client(
    client_id: int,
    db: AsyncSession = Depends(get_db),
    user: UserPayload = Depends(get_current_user)
):
    return await crud.get_client(db, client_id, user.user_id)

@router.put("/{client_id}", response_model=schemas.ClientResponse)
async def update_client(
    client_id: int,
    client: schemas.ClientCreate,
    db: AsyncSession = Depends(get_db),
    user: UserPayload = Depends(get_current_user)
):
    return await crud.update_client(db, client_id, client, user.user_id)

@router.delete("/{client_id}", response_model=schemas.ClientResponse)
async def delete_client(
    client_id: int,
    db: AsyncSession = Depends(get_db),
    user: UserPayload = Depends(get_current_user)
):
    """
    **Eliminar Cliente**

    Borrado lógico: el cliente deja de aparecer en listados pero sus
    proformas históricas lo siguen mostrando.
    """
    return await crud.delete_client(db, client_id, user.user_id)

import logging
from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from .. import crud, schemas
from ..database import get_db
from ..utils.pdf_generator import generate_proforma_pdf, pdf_filename
from proforma_common.security import get_current_user, UserPayload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/proformas", tags=["Proformas"])

@router.get("", response_model=schemas.PaginatedResponse[schemas.ProformaSummary])
async def read_proformas(
    page: int = 1,
    limit: int = crud.PAGE_SIZE,
    search: Optional[str] = None,
    status: Optional[str] = None,     # Filtro opcional: 'draft' o 'finalized'
    db: AsyncSession = Depends(get_db),
    user: UserPayload = Depends(get_current_user)
):
    """
    Historial de proformas, más recientes primero.

    `search` numérico busca el número exacto; texto busca por nombre del cliente.
    """
    return await crud.get_proformas(
        db, user.user_id, page=page, limit=limit, search=search,
        status=status
    )

# Debe declararse antes de /{proforma_id}
@router.get("/next-number", response_model=schemas.NextNumberResponse)
async def read_next_number(
    db: AsyncSession = Depends(get_db),
    user: UserPayload = Depends(get_current_user)
):
    """Vista previa del próximo número. No lo reserva."""
    next_number = await crud.get_next_proforma_number(db, user.user_id)
    return {"next_number": next_number}

@router.post("", response_model=schemas.ProformaResponse, status_code=201)
async def create_proforma(
    proforma: schemas.ProformaCreate,
    db: AsyncSession = Depends(get_db),
    user: UserPayload = Depends(get_current_user)
):
    """
    **Crear Proforma**

    Calcula precios por línea, subtotal, IVA y total, y asigna el siguiente
    número del usuario. Queda en estado borrador.
    """
    return await crud.create_proforma(db, proforma, user.user_id)

@router.get("/{proforma_id}", response_model=schemas.ProformaResponse)
async def read_proforma(
    proforma_id: int,
    db: AsyncSession = Depends(get_db),
    user: UserPayload = Depends(get_current_user)
):
    return await crud.get_proforma(db, proforma_id, user.user_id)

@router.put("/{proforma_id}", response_model=schemas.ProformaResponse)
async def update_proforma(
    proforma_id: int,
    proforma: schemas.ProformaCreate,
    db: AsyncSession = Depends(get_db),
    user: UserPayload = Depends(get_current_user)
):
    """Reemplaza cabecera e ítems de un borrador. Falla con 409 si está finalizada."""
    return await crud.update_proforma(db, proforma_id, proforma, user.user_id)

@router.delete("/{proforma_id}", status_code=204)
async def delete_proforma(
    proforma_id: int,
    db: AsyncSession = Depends(get_db),
    user: UserPayload = Depends(get_current_user)
):
    await crud.delete_proforma(db, proforma_id, user.user_id)

@router.post("/{proforma_id}/finalize", response_model=schemas.ProformaResponse)
async def finalize_proforma(
    proforma_id: int,
    db: AsyncSession = Depends(get_db),
    user: UserPayload = Depends(get_current_user)
):
    return await crud.finalize_proforma(db, proforma_id, user.user_id)

@router.post("/{proforma_id}/clone", response_model=schemas.ProformaResponse, status_code=201)
async def clone_proforma(
    proforma_id: int,
    db: AsyncSession = Depends(get_db),
    user: UserPayload = Depends(get_current_user)
):
    """
    **Clonar Proforma**

    Crea un borrador nuevo con la fecha de hoy copiando cabecera e ítems.
    Los montos se copian tal cual, sin recalcular.
    """
    return await crud.clone_proforma(db, proforma_id, user.user_id)

@router.get("/{proforma_id}/pdf")
async def get_proforma_pdf(
    proforma_id: int,
    db: AsyncSession = Depends(get_db),
    user: UserPayload = Depends(get_current_user)
):
    """
    **Descargar PDF de Proforma**

    Retorna un stream de bytes (application/pdf) en formato A4.
    """
    proforma = await crud.get_proforma(db, proforma_id, user.user_id)
    pdf_buffer = generate_proforma_pdf(proforma, proforma.client, proforma.items)
    logger.info(f"🖨️ PDF generado para la proforma {proforma.proforma_number}")

    return StreamingResponse(
        pdf_buffer,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={pdf_filename(proforma)}"}
    )

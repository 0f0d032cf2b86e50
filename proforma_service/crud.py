import logging
import os
from datetime import date, datetime, timezone
from typing import Optional, Dict, Any, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy import func, or_, delete
from . import models, schemas
from .errors import (
    AuthorizationError, ConflictError, NotFoundError, PersistenceError, StateError, ValidationError,
)
from .models import ProformaStatus
from .services import pricing, sequence

logger = logging.getLogger(__name__)

PAGE_SIZE = int(os.getenv("PAGE_SIZE", 10))

DUPLICATE_CEDULA_MSG = "Ya existe un cliente con esta Cédula/RUC."
FINALIZED_MSG = "La proforma está finalizada y no se puede modificar."

# Tope de la columna INTEGER; números mayores se buscan solo por nombre
MAX_PROFORMA_NUMBER = 2**31 - 1

# Campos de cabecera que se copian tal cual al clonar
CLONED_FIELDS = (
    "client_id", "delivery_days", "payment_methods", "observations",
    "iva_percentage", "subtotal", "iva_amount", "total",
)

# --- UTILIDADES ---
def _paginate(data, total: int, page: int, limit: int) -> Dict[str, Any]:
    return {
        "data": data,
        "meta": {
            "total": total,
            "page": page,
            "limit": limit,
            "total_pages": (total + limit - 1) // limit if limit > 0 else 0
        }
    }

def _check_owner(obj, user_id: int, not_found_msg: str):
    """Verifica que el registro exista y pertenezca al usuario."""
    if obj is None:
        raise NotFoundError(not_found_msg)
    if obj.user_id != user_id:
        raise AuthorizationError()
    return obj

async def _commit(db: AsyncSession, action: str):
    """Commit que traduce errores de base de datos a PersistenceError."""
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"❌ Error de base de datos al {action}: {e}")
        raise PersistenceError(f"No se pudo {action}.") from e

# --- CLIENTES ---
async def get_clients(
    db: AsyncSession,
    user_id: int,
    page: int = 1,
    limit: int = PAGE_SIZE,
    search: Optional[str] = None
) -> Dict[str, Any]:
    """
    Obtiene el listado paginado de clientes activos del usuario.

    Args:
        db (AsyncSession): Sesión de base de datos.
        user_id (int): Dueño de los registros.
        page (int): Número de página (desde 1).
        limit (int): Registros por página.
        search (str, optional): Filtro por nombres, apellidos o Cédula/RUC.

    Returns:
        Dict: Estructura con 'data' (lista) y 'meta' (paginación).
    """
    page = max(page, 1)
    offset = (page - 1) * limit

    # Condiciones base (Multi-tenancy + borrado lógico)
    conditions = [
        models.Client.user_id == user_id,
        models.Client.deleted_at.is_(None)
    ]

    if search:
        search_term = f"%{search.strip()}%"
        conditions.append(
            or_(
                models.Client.first_name.ilike(search_term),
                models.Client.last_name.ilike(search_term),
                models.Client.cedula_ruc.ilike(search_term)
            )
        )

    # 1. Conteo Rápido (Count ID)
    count_query = select(func.count(models.Client.id)).filter(*conditions)
    total = (await db.execute(count_query)).scalar() or 0

    # 2. Obtener Datos
    query = (
        select(models.Client)
        .filter(*conditions)
        .order_by(models.Client.created_at.desc(), models.Client.id.desc())
        .offset(offset)
        .limit(limit)
    )
    result = await db.execute(query)
    return _paginate(result.scalars().all(), total, page, limit)

async def get_client(db: AsyncSession, client_id: int, user_id: int, include_deleted: bool = False) -> models.Client:
    """
    Busca un cliente del usuario.
    include_deleted=True permite resolver clientes borrados (referencias históricas).
    """
    client = _check_owner(await db.get(models.Client, client_id), user_id, "Cliente no encontrado")
    if client.deleted_at is not None and not include_deleted:
        raise NotFoundError("Cliente no encontrado")
    return client

async def get_client_by_cedula(
    db: AsyncSession, user_id: int, cedula_ruc: str, exclude_id: Optional[int] = None
) -> Optional[models.Client]:
    """Busca un cliente activo por su Cédula/RUC dentro del mismo usuario."""
    conditions = [
        models.Client.user_id == user_id,
        models.Client.cedula_ruc == cedula_ruc,
        models.Client.deleted_at.is_(None)
    ]
    if exclude_id is not None:
        conditions.append(models.Client.id != exclude_id)
    result = await db.execute(select(models.Client).filter(*conditions))
    return result.scalars().first()

async def _save_client(db: AsyncSession, db_client: models.Client, action: str) -> models.Client:
    try:
        await db.commit()
    except IntegrityError as e:
        # El índice único parcial respalda la validación previa
        await db.rollback()
        raise ConflictError(DUPLICATE_CEDULA_MSG) from e
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"❌ Error de base de datos al {action}: {e}")
        raise PersistenceError(f"No se pudo {action}.") from e
    await db.refresh(db_client)
    return db_client

async def create_client(db: AsyncSession, client: schemas.ClientCreate, user_id: int) -> models.Client:
    """
    Registra un nuevo cliente.

    Raises:
        ConflictError: Si ya existe un cliente activo con la misma Cédula/RUC.
    """
    if await get_client_by_cedula(db, user_id, client.cedula_ruc):
        raise ConflictError(DUPLICATE_CEDULA_MSG)

    db_client = models.Client(**client.model_dump(), user_id=user_id)
    db.add(db_client)
    return await _save_client(db, db_client, "crear el cliente")

async def update_client(db: AsyncSession, client_id: int, client: schemas.ClientCreate, user_id: int) -> models.Client:
    db_client = await get_client(db, client_id, user_id)

    if await get_client_by_cedula(db, user_id, client.cedula_ruc, exclude_id=client_id):
        raise ConflictError(DUPLICATE_CEDULA_MSG)

    for key, value in client.model_dump().items():
        setattr(db_client, key, value)
    db_client.updated_at = datetime.now(timezone.utc)
    return await _save_client(db, db_client, "actualizar el cliente")

async def delete_client(db: AsyncSession, client_id: int, user_id: int) -> models.Client:
    """Borrado lógico: marca deleted_at. Si ya estaba borrado no hace nada."""
    db_client = await get_client(db, client_id, user_id, include_deleted=True)
    if db_client.deleted_at is None:
        db_client.deleted_at = datetime.now(timezone.utc)
        await _commit(db, "eliminar el cliente")
        logger.info(f"Cliente {client_id} marcado como eliminado")
    return db_client

# --- PROFORMAS ---
async def _load_proforma(db: AsyncSession, proforma_id: int, user_id: int) -> models.Proforma:
    """Carga cabecera, cliente (aunque esté borrado) e ítems en orden de creación."""
    query = (
        select(models.Proforma)
        .options(selectinload(models.Proforma.items), selectinload(models.Proforma.client))
        .filter(models.Proforma.id == proforma_id)
        .execution_options(populate_existing=True)
    )
    result = await db.execute(query)
    return _check_owner(result.scalars().first(), user_id, "Proforma no encontrada")

async def _get_client_for_proforma(db: AsyncSession, client_id: int, user_id: int) -> models.Client:
    client = await db.get(models.Client, client_id)
    if client is None or client.deleted_at is not None:
        raise ValidationError(fields={"client_id": ["Seleccione un cliente válido"]})
    if client.user_id != user_id:
        raise AuthorizationError()
    return client

def _is_number_collision(error: IntegrityError) -> bool:
    message = str(error.orig)
    return "uq_proformas_user_number" in message or "proformas.proforma_number" in message

def _build_items(proforma_id: Optional[int], rows: List[Dict[str, Any]]) -> List[models.Item]:
    return [models.Item(proforma_id=proforma_id, **row) for row in rows]

def _item_rows(items_in: List[schemas.ItemCreate], totals: pricing.ProformaTotals) -> List[Dict[str, Any]]:
    return [
        {**item.model_dump(), "line_total": line_total}
        for item, line_total in zip(items_in, totals.line_totals)
    ]

async def _insert_header(db: AsyncSession, user_id: int, values: Dict[str, Any]) -> models.Proforma:
    """
    Reserva número y guarda la cabecera.

    El número se confirma antes de insertar la cabecera, así un reintento
    siempre recibe uno nuevo. Si el número ya existe (unique user_id+number)
    se reintenta una sola vez.
    """
    for attempt in range(2):
        number = await sequence.allocate_next(db, user_id)
        await _commit(db, "generar el número de proforma")

        db_proforma = models.Proforma(user_id=user_id, proforma_number=number, **values)
        db.add(db_proforma)
        try:
            await db.commit()
            return db_proforma
        except IntegrityError as e:
            await db.rollback()
            if not _is_number_collision(e):
                logger.error(f"❌ Error de integridad al guardar la proforma: {e}")
                raise PersistenceError("No se pudo crear la proforma.") from e
            if attempt == 0:
                logger.warning(f"⚠️ Número {number} ya usado por el usuario {user_id}, reintentando")
                continue
            logger.error(f"❌ Colisión repetida de numeración para el usuario {user_id} (número {number})")
            raise ConflictError("No se pudo asignar un número de proforma único.") from e
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"❌ Error de base de datos al crear la proforma: {e}")
            raise PersistenceError("No se pudo crear la proforma.") from e

async def _insert_items(db: AsyncSession, proforma_id: int, number: int, rows: List[Dict[str, Any]]):
    """
    Inserta los ítems de una cabecera ya guardada.
    Si falla, elimina la cabecera para no dejar proformas sin ítems.
    """
    try:
        db.add_all(_build_items(proforma_id, rows))
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.warning(f"⚠️ Falló el guardado de ítems de la proforma {number}, eliminando cabecera")
        try:
            await db.execute(
                delete(models.Proforma)
                .where(models.Proforma.id == proforma_id)
                .execution_options(synchronize_session=False)
            )
            await db.commit()
        except SQLAlchemyError as cleanup_error:
            await db.rollback()
            logger.error(f"❌ No se pudo eliminar la cabecera huérfana {proforma_id}: {cleanup_error}")
        raise PersistenceError("No se pudieron guardar los ítems de la proforma.") from e

async def get_next_proforma_number(db: AsyncSession, user_id: int) -> int:
    """Vista previa del próximo número (no lo reserva)."""
    return await sequence.peek_next_number(db, user_id)

async def create_proforma(db: AsyncSession, proforma_in: schemas.ProformaCreate, user_id: int) -> models.Proforma:
    """
    Crea una proforma en estado borrador.

    1. Verifica el cliente (existe, es del usuario y no está borrado).
    2. Calcula totales por línea, subtotal, IVA y total.
    3. Reserva el número y guarda la cabecera.
    4. Guarda los ítems (con borrado compensatorio de la cabecera si fallan).
    """
    await _get_client_for_proforma(db, proforma_in.client_id, user_id)

    totals = pricing.aggregate(proforma_in.items, proforma_in.iva_percentage)
    rows = _item_rows(proforma_in.items, totals)

    header = proforma_in.model_dump(exclude={"items"})
    db_proforma = await _insert_header(db, user_id, {
        **header,
        "status": ProformaStatus.DRAFT,
        "subtotal": totals.subtotal,
        "iva_amount": totals.iva_amount,
        "total": totals.total,
    })
    proforma_id, number = db_proforma.id, db_proforma.proforma_number

    await _insert_items(db, proforma_id, number, rows)
    logger.info(f"📄 Proforma {number} creada para el usuario {user_id} (total {totals.total:.2f})")
    return await _load_proforma(db, proforma_id, user_id)

async def get_proforma(db: AsyncSession, proforma_id: int, user_id: int) -> models.Proforma:
    return await _load_proforma(db, proforma_id, user_id)

async def update_proforma(
    db: AsyncSession, proforma_id: int, proforma_in: schemas.ProformaCreate, user_id: int
) -> models.Proforma:
    """
    Edita una proforma en borrador.

    Reemplaza todos los ítems (borra todos y vuelve a insertar) y recalcula
    los totales de cabecera. No cambia el número. La última escritura gana.

    Raises:
        StateError: Si la proforma está finalizada.
    """
    proforma = await _load_proforma(db, proforma_id, user_id)
    if proforma.status != ProformaStatus.DRAFT:
        raise StateError(FINALIZED_MSG)

    if proforma_in.client_id != proforma.client_id:
        await _get_client_for_proforma(db, proforma_in.client_id, user_id)

    totals = pricing.aggregate(proforma_in.items, proforma_in.iva_percentage)
    rows = _item_rows(proforma_in.items, totals)

    try:
        proforma.items.clear()
        await db.flush()  # DELETE de los ítems anteriores

        proforma.items.extend(_build_items(proforma.id, rows))
        for key, value in proforma_in.model_dump(exclude={"items"}).items():
            setattr(proforma, key, value)
        proforma.subtotal = totals.subtotal
        proforma.iva_amount = totals.iva_amount
        proforma.total = totals.total
        proforma.updated_at = datetime.now(timezone.utc)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"❌ Error de base de datos al actualizar la proforma {proforma_id}: {e}")
        raise PersistenceError("No se pudo actualizar la proforma.") from e

    return await _load_proforma(db, proforma_id, user_id)

async def finalize_proforma(db: AsyncSession, proforma_id: int, user_id: int) -> models.Proforma:
    """Marca la proforma como finalizada. Finalizar dos veces no es error."""
    proforma = await _load_proforma(db, proforma_id, user_id)
    if proforma.status == ProformaStatus.FINALIZED:
        return proforma

    proforma.status = ProformaStatus.FINALIZED
    proforma.updated_at = datetime.now(timezone.utc)
    await _commit(db, "finalizar la proforma")
    logger.info(f"🔒 Proforma {proforma.proforma_number} finalizada")
    return await _load_proforma(db, proforma_id, user_id)

async def clone_proforma(db: AsyncSession, proforma_id: int, user_id: int) -> models.Proforma:
    """
    Duplica una proforma (en cualquier estado) como nuevo borrador.

    Recibe número nuevo y fecha de hoy. Los ítems se copian tal cual,
    incluido el line_total guardado: no se recalculan precios.
    """
    source = await _load_proforma(db, proforma_id, user_id)

    # Se copian los valores antes de cualquier commit/rollback
    values = {field: getattr(source, field) for field in CLONED_FIELDS}
    values.update(status=ProformaStatus.DRAFT, date=date.today())
    rows = [
        {
            "description": item.description,
            "unit": item.unit,
            "quantity": item.quantity,
            "unit_cost": item.unit_cost,
            "percentage_gain": item.percentage_gain,
            "comment": item.comment,
            "line_total": item.line_total,
        }
        for item in source.items
    ]
    source_number = source.proforma_number

    db_clone = await _insert_header(db, user_id, values)
    clone_id, number = db_clone.id, db_clone.proforma_number

    await _insert_items(db, clone_id, number, rows)
    logger.info(f"📄 Proforma {source_number} clonada como {number}")
    return await _load_proforma(db, clone_id, user_id)

async def delete_proforma(db: AsyncSession, proforma_id: int, user_id: int):
    """Elimina un borrador y sus ítems. Su número no se vuelve a usar."""
    proforma = await _load_proforma(db, proforma_id, user_id)
    if proforma.status != ProformaStatus.DRAFT:
        raise StateError(FINALIZED_MSG)

    await db.delete(proforma)
    await _commit(db, "eliminar la proforma")
    logger.info(f"Proforma {proforma.proforma_number} eliminada")

async def get_proformas(
    db: AsyncSession,
    user_id: int,
    page: int = 1,
    limit: int = PAGE_SIZE,
    search: Optional[str] = None,
    status: Optional[str] = None
) -> Dict[str, Any]:
    """
    Lista las proformas del usuario, más recientes primero.

    La búsqueda coincide exacto con el número si es numérica, o por
    nombre del cliente (subcadena, sin distinguir mayúsculas).
    """
    page = max(page, 1)
    offset = (page - 1) * limit
    conditions = [models.Proforma.user_id == user_id]

    if status:
        conditions.append(models.Proforma.status == status)

    if search:
        term = search.strip()
        search_term = f"%{term}%"
        name_match = or_(
            models.Client.first_name.ilike(search_term),
            models.Client.last_name.ilike(search_term),
            (models.Client.first_name + " " + models.Client.last_name).ilike(search_term)
        )
        if term.isascii() and term.isdigit() and int(term) <= MAX_PROFORMA_NUMBER:
            conditions.append(or_(models.Proforma.proforma_number == int(term), name_match))
        else:
            conditions.append(name_match)

    # Contar Rapido
    count_query = (
        select(func.count(models.Proforma.id))
        .join(models.Proforma.client)
        .filter(*conditions)
    )
    total = (await db.execute(count_query)).scalar() or 0

    # Consulta de Datos
    query = (
        select(models.Proforma)
        .join(models.Proforma.client)
        .options(selectinload(models.Proforma.client))
        .filter(*conditions)
        .order_by(models.Proforma.created_at.desc(), models.Proforma.id.desc())
        .offset(offset)
        .limit(limit)
    )
    result = await db.execute(query)
    return _paginate(result.scalars().all(), total, page, limit)

# --- REPORTES ---
async def get_dashboard_stats(db: AsyncSession, user_id: int) -> Dict[str, int]:
    """Clientes activos y proformas con fecha en el mes actual."""
    today = date.today()
    start_of_month = today.replace(day=1)
    if today.month == 12:
        start_of_next = date(today.year + 1, 1, 1)
    else:
        start_of_next = date(today.year, today.month + 1, 1)

    query_clients = select(func.count(models.Client.id)).filter(
        models.Client.user_id == user_id,
        models.Client.deleted_at.is_(None)
    )
    total_clients = (await db.execute(query_clients)).scalar() or 0

    query_month = select(func.count(models.Proforma.id)).filter(
        models.Proforma.user_id == user_id,
        models.Proforma.date >= start_of_month,
        models.Proforma.date < start_of_next
    )
    monthly_proformas = (await db.execute(query_month)).scalar() or 0

    return {
        "total_clients": total_clients,
        "monthly_proformas": monthly_proformas
    }

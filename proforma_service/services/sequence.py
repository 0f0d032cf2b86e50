import logging
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.dialects import postgresql, sqlite
from .. import models

logger = logging.getLogger(__name__)

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


async def allocate_next(db: AsyncSession, user_id: int) -> int:
    """
    Reserva el siguiente número de proforma del usuario.

    Es una sola sentencia atómica (INSERT ... ON CONFLICT DO UPDATE ... RETURNING):
    si no hay fila crea una con last_number=1, si existe la incrementa y devuelve el
    nuevo valor. La fila queda bloqueada hasta que el llamador haga commit, así dos
    solicitudes concurrentes nunca reciben el mismo número.

    Se ejecuta dentro de la transacción del llamador (no hace commit).
    """
    dialect = db.get_bind().dialect.name
    insert = _UPSERT_DIALECTS.get(dialect)
    if insert is None:
        raise RuntimeError(f"Dialecto sin soporte de incremento atómico: {dialect}")

    table = models.ProformaSequence.__table__
    stmt = (
        insert(table)
        .values(user_id=user_id, last_number=1)
        .on_conflict_do_update(
            index_elements=[table.c.user_id],
            set_={
                "last_number": table.c.last_number + 1,
                "updated_at": func.current_timestamp(),
            },
        )
        .returning(table.c.last_number)
    )
    result = await db.execute(stmt)
    number = result.scalar_one()
    logger.debug(f"Número {number} reservado para usuario {user_id}")
    return number


async def peek_next_number(db: AsyncSession, user_id: int) -> int:
    """
    Vista previa del siguiente número (solo lectura).
    Puede quedar desactualizada; el número real se fija al crear la proforma.
    """
    query = select(models.ProformaSequence.last_number).filter(
        models.ProformaSequence.user_id == user_id
    )
    result = await db.execute(query)
    last_number = result.scalar()
    return (last_number or 0) + 1

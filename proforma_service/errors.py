import logging
from typing import Dict, List, Optional
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger("proforma-service")


class ProformaError(Exception):
    """Error de negocio con mensaje legible para el usuario."""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message}


class ValidationError(ProformaError):
    """Datos de entrada inválidos. Incluye los errores por campo para el formulario."""
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, message: str = "Datos inválidos", fields: Optional[Dict[str, List[str]]] = None):
        super().__init__(message)
        self.fields = fields or {}

    def to_dict(self) -> dict:
        return {"error": self.message, "fields": self.fields}


class AuthorizationError(ProformaError):
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class NotFoundError(ProformaError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(ProformaError):
    status_code = status.HTTP_409_CONFLICT


class StateError(ProformaError):
    """Intento de modificar una proforma finalizada."""
    status_code = status.HTTP_409_CONFLICT


class PersistenceError(ProformaError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def field_errors(errors) -> Dict[str, List[str]]:
    """
    Agrupa los errores de Pydantic por campo: {"items.0.quantity": ["..."]}.
    Se reportan todos los errores a la vez, no solo el primero.
    """
    fields: Dict[str, List[str]] = {}
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part != "body"]
        key = ".".join(loc) or "__root__"
        fields.setdefault(key, []).append(err.get("msg", "Valor inválido"))
    return fields


def register_error_handlers(app: FastAPI):
    @app.exception_handler(ProformaError)
    async def proforma_error_handler(request: Request, exc: ProformaError):
        if exc.status_code >= 500:
            logger.error(f"❌ Error en {request.url}: {exc.message}")
        else:
            logger.info(f"Solicitud rechazada en {request.url}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        error = ValidationError(fields=field_errors(exc.errors()))
        logger.info(f"Error de validación en {request.url}: {error.fields}")
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        # No se exponen detalles de la base de datos al cliente
        logger.error(f"❌ Error de base de datos en {request.url}: {exc}")
        error = PersistenceError("Error interno al acceder a los datos.")
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

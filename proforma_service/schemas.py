from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from datetime import datetime, date
from typing import List, Optional, Generic, TypeVar

T = TypeVar("T")

# --- GENERIC PAGINATOR ---
class MetaData(BaseModel):
    """Metadatos para respuestas paginadas."""
    total: int
    page: int
    limit: int
    total_pages: int

class PaginatedResponse(BaseModel, Generic[T]):
    """Estructura genérica para devolver listas paginadas."""
    data: List[T]
    meta: MetaData

# --- CLIENTES ---
class ClientBase(BaseModel):
    """Datos base del cliente compartidos entre creación y lectura."""
    first_name: str = Field(..., min_length=1, description="Nombres")
    last_name: str = Field(..., min_length=1, description="Apellidos")
    cedula_ruc: str = Field(..., pattern=r"^[0-9]{10}([0-9]{3})?$", description="Cédula (10 dígitos) o RUC (13 dígitos)")
    email: Optional[EmailStr] = Field(None, description="Correo electrónico de contacto")
    phone: Optional[str] = None
    address: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def empty_email_as_none(cls, value):
        # El formulario envía "" cuando el correo se deja en blanco
        if isinstance(value, str) and not value.strip():
            return None
        return value

class ClientCreate(ClientBase):
    """Esquema para crear o editar un cliente."""
    pass

class ClientResponse(ClientBase):
    """Esquema de respuesta completo con datos del sistema."""
    id: int
    created_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class ClientSummary(BaseModel):
    id: int
    first_name: str
    last_name: str
    cedula_ruc: str
    model_config = ConfigDict(from_attributes=True)

# --- PROFORMAS ---
class ItemCreate(BaseModel):
    description: str = Field(..., min_length=1)
    unit: str = Field(..., min_length=1, description="Unidad de medida (u, m2, kg...)")
    quantity: float = Field(..., gt=0, description="Cantidad, debe ser mayor a 0")
    unit_cost: float = Field(..., ge=0, description="Costo unitario")
    percentage_gain: float = Field(0, ge=0, description="Porcentaje de ganancia sobre el costo")
    comment: Optional[str] = None

    @field_validator("percentage_gain", mode="before")
    @classmethod
    def null_gain_as_zero(cls, value):
        return 0 if value is None or value == "" else value

class ItemResponse(BaseModel):
    id: int
    description: str
    unit: str
    quantity: float
    unit_cost: float
    percentage_gain: float
    comment: Optional[str] = None
    line_total: float
    model_config = ConfigDict(from_attributes=True)

class ProformaCreate(BaseModel):
    client_id: int = Field(..., gt=0, description="Cliente al que se emite la proforma")
    date: date
    iva_percentage: float = Field(15, ge=0, description="Porcentaje de IVA")
    delivery_days: Optional[int] = Field(None, ge=0, description="Plazo de entrega en días laborables")
    payment_methods: Optional[str] = None
    observations: Optional[str] = None
    items: List[ItemCreate] = Field(..., min_length=1, description="Al menos un ítem")

class ProformaSummary(BaseModel):
    id: int
    proforma_number: int
    status: str
    date: date
    total: float
    client: Optional[ClientSummary] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class ProformaResponse(BaseModel):
    id: int
    proforma_number: int
    status: str
    client_id: int
    date: date
    delivery_days: Optional[int] = None
    payment_methods: Optional[str] = None
    observations: Optional[str] = None

    iva_percentage: float
    subtotal: float
    iva_amount: float
    total: float

    client: Optional[ClientResponse] = None
    items: List[ItemResponse]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class NextNumberResponse(BaseModel):
    next_number: int

# --- REPORTES ---
class DashboardStats(BaseModel):
    total_clients: int
    monthly_proformas: int

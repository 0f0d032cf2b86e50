from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Text, Date, Index, UniqueConstraint, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from .database import Base


class ProformaStatus:
    """Estados del ciclo de vida de una proforma."""
    DRAFT = "draft"
    FINALIZED = "finalized"


class Client(Base):
    """
    Cliente al que se le emiten proformas.

    Attributes:
        user_id: Usuario dueño del registro (Multi-tenancy).
        cedula_ruc: Cédula (10 dígitos) o RUC (13 dígitos), único por usuario entre clientes activos.
        deleted_at: Marca de borrado lógico. Nunca se elimina físicamente para no romper proformas viejas.
    """
    __tablename__ = "clients"
    __table_args__ = (
        Index(
            "uq_clients_user_cedula_active",
            "user_id", "cedula_ruc",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, index=True, nullable=False)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    cedula_ruc = Column(String(13), nullable=False)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    address = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    proformas = relationship("Proforma", back_populates="client")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class Proforma(Base):
    """
    Cabecera de Proforma (Cotización).
    Los montos se calculan al guardar y se almacenan, no se derivan al leer.
    """
    __tablename__ = "proformas"
    __table_args__ = (
        UniqueConstraint("user_id", "proforma_number", name="uq_proformas_user_number"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, index=True, nullable=False)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False)

    # --- NUMERACIÓN ---
    # Consecutivo por usuario, asignado por proforma_sequence. Nunca se reutiliza.
    proforma_number = Column(Integer, nullable=False)
    status = Column(String, default=ProformaStatus.DRAFT, nullable=False)   # draft, finalized

    date = Column(Date, nullable=False)
    delivery_days = Column(Integer, nullable=True)
    payment_methods = Column(Text, nullable=True)
    observations = Column(Text, nullable=True)

    # ---- MONTOS ----
    iva_percentage = Column(Float, default=15, nullable=False)
    subtotal = Column(Float, default=0, nullable=False)
    iva_amount = Column(Float, default=0, nullable=False)
    total = Column(Float, default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relaciones
    client = relationship("Client", back_populates="proformas")
    items = relationship(
        "Item",
        back_populates="proforma",
        cascade="all, delete-orphan",
        order_by="Item.id",
    )


class Item(Base):
    """Línea de detalle de una proforma. No existe fuera de su cabecera."""
    __tablename__ = "items"

    id = Column(Integer, primary_key=True, index=True)
    proforma_id = Column(Integer, ForeignKey("proformas.id", ondelete="CASCADE"), nullable=False, index=True)

    description = Column(Text, nullable=False)
    unit = Column(String, nullable=False)
    quantity = Column(Float, nullable=False)
    unit_cost = Column(Float, nullable=False)
    percentage_gain = Column(Float, default=0, nullable=False)
    comment = Column(Text, nullable=True)
    line_total = Column(Float, nullable=False)          # (costo + ganancia) * cantidad, calculado al guardar

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    proforma = relationship("Proforma", back_populates="items")


class ProformaSequence(Base):
    """
    Contador de numeración por usuario.
    Solo lo modifica services.sequence.allocate_next; nunca se decrementa.
    """
    __tablename__ = "proforma_sequence"

    user_id = Column(Integer, primary_key=True)
    last_number = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), server_default=func.now())

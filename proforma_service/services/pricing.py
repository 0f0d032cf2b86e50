from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping


@dataclass(frozen=True)
class LinePrice:
    earned: float
    unit_price: float
    line_total: float


@dataclass(frozen=True)
class ProformaTotals:
    """Resultado de una pasada de cálculo: totales por línea y de cabecera."""
    subtotal: float
    iva_amount: float
    total: float
    line_totals: List[float] = field(default_factory=list)


def price_line(unit_cost: float, percentage_gain: float, quantity: float) -> LinePrice:
    """
    Calcula el precio de una línea.

    earned = costo * (ganancia / 100)
    unit_price = costo + earned
    line_total = unit_price * cantidad

    No redondea: el redondeo a 2 decimales se hace solo al presentar.
    """
    earned = unit_cost * (percentage_gain / 100)
    unit_price = unit_cost + earned
    line_total = unit_price * quantity
    return LinePrice(earned=earned, unit_price=unit_price, line_total=line_total)


def _field(item: Any, name: str, default=None):
    if isinstance(item, Mapping):
        value = item.get(name, default)
    else:
        value = getattr(item, name, default)
    return default if value is None else value


def aggregate(items: Iterable[Any], tax_percentage: float) -> ProformaTotals:
    """
    Suma las líneas de una proforma y aplica el IVA.

    Acepta objetos (schemas/modelos) o diccionarios con unit_cost,
    percentage_gain y quantity. Devuelve los line_total en el mismo orden.
    """
    line_totals = []
    for item in items:
        line = price_line(
            float(_field(item, "unit_cost")),
            float(_field(item, "percentage_gain", 0)),
            float(_field(item, "quantity")),
        )
        line_totals.append(line.line_total)

    subtotal = sum(line_totals)
    iva_amount = subtotal * (tax_percentage / 100)
    total = subtotal + iva_amount

    return ProformaTotals(
        subtotal=subtotal,
        iva_amount=iva_amount,
        total=total,
        line_totals=line_totals,
    )

from io import BytesIO
import os
import textwrap
from reportlab.pdfgen import canvas
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from ..services.currency_text import amount_to_words
from ..services.pricing import price_line

PAGE_WIDTH, PAGE_HEIGHT = A4

# Estilos de fuente
FONT_NORMAL = "Helvetica"
FONT_BOLD = "Helvetica-Bold"
FONT_SIZE_S = 7
FONT_SIZE_M = 9
FONT_SIZE_L = 12

# Columnas de la tabla de ítems (x inicial, ancho, alineación)
ITEM_COLUMNS = [
    ("DESCRIPCIÓN", 14, 114, "left"),
    ("UNIDAD", 128, 14, "center"),
    ("CANTIDAD", 142, 17, "center"),
    ("PRECIO UNIT", 159, 21, "right"),
    ("TOTAL", 180, 16, "right"),
]
HEADER_FILL = (180 / 255, 198 / 255, 231 / 255)

DEFAULT_DELIVERY_DAYS = 15
DEFAULT_PAYMENT_METHODS = "60% Para Iniciar 40% Contra-entrega"

DEFAULT_BUSINESS = {
    "name": os.getenv("PDF_BUSINESS_NAME", "ARMONINT"),
    "professional": os.getenv("PDF_SIGNATURE", "Dis. Verónica Cedillo"),
    "id": os.getenv("PDF_BUSINESS_ID", "0105706444"),
}


def format_amount(amount) -> str:
    """Redondeo a 2 decimales solo para mostrar."""
    return f"{round(float(amount), 2):.2f}"


def format_number(number: int) -> str:
    return str(number).zfill(4)


def delivery_days_for(proforma) -> int:
    """Plazo a imprimir; 0 es un plazo válido, solo None usa el valor por defecto."""
    if proforma.delivery_days is None:
        return DEFAULT_DELIVERY_DAYS
    return proforma.delivery_days


class ProformaPDFGenerator:
    """Dibuja una proforma en A4. Las coordenadas se manejan en mm desde arriba."""

    def __init__(self, buffer, proforma, client, items, business):
        self.c = canvas.Canvas(buffer, pagesize=A4)
        self.proforma = proforma
        self.client = client
        self.items = items
        self.business = business
        self.cursor_y = 0

    def _y(self, y_mm):
        return PAGE_HEIGHT - y_mm * mm

    def _text(self, x_mm, y_mm, text, font=FONT_NORMAL, size=FONT_SIZE_M, align="left"):
        self.c.setFont(font, size)
        x, y = x_mm * mm, self._y(y_mm)
        if align == "right":
            self.c.drawRightString(x, y, text)
        elif align == "center":
            self.c.drawCentredString(x, y, text)
        else:
            self.c.drawString(x, y, text)

    def _rect(self, x_mm, y_mm, w_mm, h_mm, fill=None):
        if fill:
            self.c.setFillColorRGB(*fill)
        self.c.rect(x_mm * mm, self._y(y_mm + h_mm), w_mm * mm, h_mm * mm, stroke=1, fill=1 if fill else 0)
        self.c.setFillColorRGB(0, 0, 0)

    def _line(self, x1, y1, x2, y2):
        self.c.line(x1 * mm, self._y(y1), x2 * mm, self._y(y2))

    def _new_page_if_needed(self, needed_mm):
        if self.cursor_y + needed_mm > 285:
            self.c.showPage()
            self.cursor_y = 15

    def _draw_header(self):
        number = format_number(self.proforma.proforma_number)
        self._rect(14, 8, 182, 20)
        self._line(140, 8, 140, 28)
        self._text(20, 16, self.business.get("name", ""), FONT_BOLD, FONT_SIZE_M)
        self._text(85, 20, f"PROFORMA 00- {number}", FONT_BOLD, FONT_SIZE_L)
        self._text(150, 15, self.business.get("professional", ""), FONT_BOLD, FONT_SIZE_M + 1)
        self._text(152, 20, self.business.get("id", ""), FONT_BOLD, FONT_SIZE_M + 1)

    def _draw_client_grid(self):
        y, row_h = 28, 7
        col1, col2, col3, col4 = 14, 35, 110, 130
        client = self.client

        self._rect(14, y, 182, row_h * 3)
        for i in (1, 2):
            self._line(14, y + row_h * i, 196, y + row_h * i)
        for x in (col2, col3, col4):
            self._line(x, y, x, y + row_h * 3)

        rows = [
            ("Fecha", self.proforma.date.strftime("%d/%m/%Y"), "Telefono", client.phone or "-"),
            ("Cliente", f"{client.first_name} {client.last_name}", "Ruc", client.cedula_ruc or ""),
            ("Dirección", client.address or "-", "correo", client.email or "-"),
        ]
        for label1, value1, label2, value2 in rows:
            self._text(col1 + 1, y + 5, label1, FONT_BOLD)
            self._text(col2 + 2, y + 5, value1[:45])
            self._text(col3 + 1, y + 5, label2, FONT_BOLD)
            self._text(col4 + 2, y + 5, value2[:40])
            y += row_h

        self.cursor_y = y + 10

    def _draw_items(self):
        row_h = 7
        self._rect(14, self.cursor_y, 182, row_h, fill=HEADER_FILL)
        for title, x, width, _ in ITEM_COLUMNS:
            self._line(x, self.cursor_y, x, self.cursor_y + row_h)
            self._text(x + width / 2, self.cursor_y + 5, title, FONT_BOLD, FONT_SIZE_S, align="center")
        self.cursor_y += row_h

        for item in self.items:
            # Precio unitario recalculado solo para mostrar; el total es el guardado
            unit_price = price_line(item.unit_cost, item.percentage_gain, item.quantity).unit_price
            lines = textwrap.wrap(item.description, width=70) or [""]
            height = max(row_h, 4 * len(lines) + 3)
            self._new_page_if_needed(height)

            self._rect(14, self.cursor_y, 182, height)
            for _, x, _, _ in ITEM_COLUMNS[1:]:
                self._line(x, self.cursor_y, x, self.cursor_y + height)

            for i, line in enumerate(lines):
                self._text(16, self.cursor_y + 5 + i * 4, line)
            values = [item.unit, f"{item.quantity:g}", format_amount(unit_price), format_amount(item.line_total)]
            for (_, x, width, align), value in zip(ITEM_COLUMNS[1:], values):
                if align == "center":
                    self._text(x + width / 2, self.cursor_y + 5, value, align="center")
                else:
                    self._text(x + width - 1, self.cursor_y + 5, value, align="right")
            self.cursor_y += height

    def _draw_totals(self):
        self._new_page_if_needed(90)
        top = self.cursor_y + 5
        x, w, row_h = 120, 76, 7
        rows = [
            ("SUBTOTAL", self.proforma.subtotal),
            (f"IVA {self.proforma.iva_percentage:g}%", self.proforma.iva_amount),
            ("TOTAL CON IVA", self.proforma.total),
        ]
        y = top
        for label, amount in rows:
            self._rect(x, y, w, row_h)
            self._line(x + 38, y, x + 38, y + row_h)
            self._text(x + 2, y + 5, label)
            self._text(x + 74, y + 5, format_amount(amount), align="right")
            y += row_h

        # Total a pagar (resaltado)
        self._rect(x, y, w, row_h, fill=(0.5, 0.5, 0.5))
        self._line(x + 38, y, x + 38, y + row_h)
        self.c.setFillColorRGB(1, 1, 1)
        self._text(x + 2, y + 5, "TOTAL A PAGAR", FONT_BOLD)
        self._text(x + 74, y + 5, format_amount(self.proforma.total), FONT_BOLD, align="right")
        self.c.setFillColorRGB(0, 0, 0)

        # Monto en letras
        words = amount_to_words(round(float(self.proforma.total), 2))
        lines = textwrap.wrap(f"SON: {words}", width=60)
        footer_y = top + 5
        self._rect(14, footer_y, 100, 4 + 4 * len(lines), fill=(0.85, 0.85, 0.85))
        for i, line in enumerate(lines):
            self._text(16, footer_y + 5 + i * 4, line, size=FONT_SIZE_S + 1)
        self.cursor_y = footer_y + 20

    def _draw_footer(self):
        y = self.cursor_y
        delivery_days = delivery_days_for(self.proforma)
        self._text(14, y, "PLAZO DE ENTREGA APROXIMADO:", FONT_BOLD, FONT_SIZE_S + 1)
        self._text(20, y + 5, f"{delivery_days} DIAS LABORABLES", size=FONT_SIZE_S + 1)

        y += 12
        self._text(14, y, "OBSERVACIONES", FONT_BOLD, FONT_SIZE_S + 1)
        notes = ["PRECIOS INCLUYEN IVA", "PLAZO DE ENTREGA FIJO SI NO SE REALIZAN CAMBIOS"]
        if self.proforma.observations:
            notes.extend(textwrap.wrap(self.proforma.observations, width=90))
        for i, line in enumerate(notes):
            self._text(20, y + 5 + i * 4, line, size=FONT_SIZE_S + 1)

        y += 8 + 4 * len(notes)
        self._text(14, y, "FORMAS DE PAGO", FONT_BOLD, FONT_SIZE_S + 1)
        self._text(20, y + 5, self.proforma.payment_methods or DEFAULT_PAYMENT_METHODS, size=FONT_SIZE_S + 1)

        y += 20
        self._text(20, y, "ATENTAMENTE", size=FONT_SIZE_S + 1)
        self._text(20, y + 5, self.business.get("professional", "").upper(), FONT_BOLD, FONT_SIZE_S + 1)

    def generate(self):
        self._draw_header()
        self._draw_client_grid()
        self._draw_items()
        self._draw_totals()
        self._draw_footer()

        # Finalizar
        self.c.showPage()
        self.c.save()


def generate_proforma_pdf(proforma, client, items: list, business: dict = None):
    """
    Genera el PDF de una proforma ya calculada.

    Recibe la cabecera con montos guardados, el cliente (aunque esté borrado)
    y los ítems en orden de creación. Devuelve un BytesIO listo para enviar.
    """
    buffer = BytesIO()
    generator = ProformaPDFGenerator(buffer, proforma, client, items, business or DEFAULT_BUSINESS)
    generator.generate()
    buffer.seek(0)
    return buffer


def pdf_filename(proforma) -> str:
    return f"Proforma-{format_number(proforma.proforma_number)}.pdf"

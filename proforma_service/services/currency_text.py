import math
from decimal import Decimal
from typing import Union

UNIDADES = ["", "UN", "DOS", "TRES", "CUATRO", "CINCO", "SEIS", "SIETE", "OCHO", "NUEVE"]
DECENAS = ["", "DIEZ", "VEINTE", "TREINTA", "CUARENTA", "CINCUENTA", "SESENTA", "SETENTA", "OCHENTA", "NOVENTA"]
DIEZ_VEINTE = ["DIEZ", "ONCE", "DOCE", "TRECE", "CATORCE", "QUINCE", "DIECISEIS", "DIECISIETE", "DIECIOCHO", "DIECINUEVE"]
CENTENAS = ["", "CIENTO", "DOSCIENTOS", "TRESCIENTOS", "CUATROCIENTOS", "QUINIENTOS",
            "SEISCIENTOS", "SETECIENTOS", "OCHOCIENTOS", "NOVECIENTOS"]

CURRENCY_NAME = "DÓLARES AMERICANOS"


def _convert_group(n: int) -> str:
    """Convierte un grupo de 1 a 999 a palabras (100 exacto es CIEN)."""
    if n == 100:
        return "CIEN"

    words = []
    if n >= 100:
        words.append(CENTENAS[n // 100])
        n %= 100

    if 10 <= n <= 19:
        words.append(DIEZ_VEINTE[n - 10])
        return " ".join(words)

    if n >= 20:
        tens = DECENAS[n // 10]
        n %= 10
        # La "Y" solo une decenas con unidades (VEINTE Y TRES)
        words.append(f"{tens} Y {UNIDADES[n]}" if n > 0 else tens)
    elif n > 0:
        words.append(UNIDADES[n])

    return " ".join(words)


def _thousands_to_words(n: int) -> str:
    """Convierte 1 a 999.999 a palabras."""
    thousands, rest = divmod(n, 1000)
    words = []
    if thousands == 1:
        words.append("MIL")
    elif thousands > 1:
        words.append(f"{_convert_group(thousands)} MIL")
    if rest > 0:
        words.append(_convert_group(rest))
    return " ".join(words)


def integer_to_words(n: int) -> str:
    if n == 0:
        return "CERO"

    millions, remainder = divmod(n, 1_000_000)
    words = []
    if millions == 1:
        words.append("UN MILLÓN")
    elif millions > 1:
        words.append(f"{integer_to_words(millions)} MILLONES")
    if remainder > 0:
        words.append(_thousands_to_words(remainder))
    return " ".join(words)


def amount_to_words(amount: Union[int, float, Decimal]) -> str:
    """
    Convierte un monto a su representación en letras para impresión legal.

    Ej: 123.5 -> "CIENTO VEINTE Y TRES DÓLARES AMERICANOS CON 50/100 CENTAVOS"

    Los centavos se calculan como round((monto - parte_entera) * 100) y se imprimen
    sin ceros a la izquierda (10.05 -> "CON 5/100").

    Raises:
        ValueError: Si el monto es negativo, NaN o infinito.
    """
    value = float(amount)
    if math.isnan(value) or math.isinf(value) or value < 0:
        raise ValueError(f"Monto inválido para conversión a letras: {amount}")

    integer_part = math.floor(value)
    # Redondeo half-up (no bancario): 12.5 centavos -> 13
    cents = math.floor((value - integer_part) * 100 + 0.5)
    if cents == 100:
        # 0.999 redondea a un dólar completo
        integer_part += 1
        cents = 0

    return f"{integer_to_words(integer_part)} {CURRENCY_NAME} CON {cents}/100 CENTAVOS"

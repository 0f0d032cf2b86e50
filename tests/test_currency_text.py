import math

import pytest

from proforma_service.services.currency_text import amount_to_words, integer_to_words


@pytest.mark.parametrize("amount, expected", [
    (100, "CIEN DÓLARES"),
    (123, "CIENTO VEINTE Y TRES DÓLARES"),
    (1500, "MIL QUINIENTOS DÓLARES"),
    (0, "CERO DÓLARES"),
    (1000000, "UN MILLÓN DÓLARES"),
    (2500000, "DOS MILLONES QUINIENTOS MIL DÓLARES"),
    (10.50, "CON 50/100 CENTAVOS"),
    (10.05, "CON 5/100 CENTAVOS"),
])
def test_amount_to_words_examples(amount, expected):
    assert expected in amount_to_words(amount)


def test_full_sentence_format():
    assert amount_to_words(34.5) == "TREINTA Y CUATRO DÓLARES AMERICANOS CON 50/100 CENTAVOS"


@pytest.mark.parametrize("n, expected", [
    (1, "UN"),
    (15, "QUINCE"),
    (20, "VEINTE"),
    (101, "CIENTO UN"),
    (110, "CIENTO DIEZ"),
    (999, "NOVECIENTOS NOVENTA Y NUEVE"),
    (1000, "MIL"),
    (2001, "DOS MIL UN"),
    (100000, "CIEN MIL"),
    (1000001, "UN MILLÓN UN"),
    (3000000, "TRES MILLONES"),
])
def test_integer_to_words(n, expected):
    assert integer_to_words(n) == expected


def test_zero_groups_are_omitted():
    # Sin "MIL" colgando cuando el grupo de miles es cero
    assert integer_to_words(5000000) == "CINCO MILLONES"
    assert integer_to_words(5000300) == "CINCO MILLONES TRESCIENTOS"


def test_cents_round_half_up():
    assert amount_to_words(1.125).endswith("CON 13/100 CENTAVOS")


def test_cents_carry_into_integer_part():
    assert amount_to_words(9.999) == "DIEZ DÓLARES AMERICANOS CON 0/100 CENTAVOS"


@pytest.mark.parametrize("amount", [-1, -0.01, math.nan, math.inf])
def test_invalid_amounts_raise(amount):
    with pytest.raises(ValueError):
        amount_to_words(amount)

import pytest

from core.value_parser import COMMA, DOT, parse_number, parse_percent


@pytest.mark.parametrize("text, expected", [
    ("35,000.50", 35000.50),
    ("1,234,567.89", 1234567.89),
    ("-12.5", -12.5),
    ("  4,512.30 ", 4512.30),
    ("0.0001", 0.0001),
])
def test_parse_number_dot_locale(text, expected):
    assert parse_number(text, DOT) == pytest.approx(expected)


@pytest.mark.parametrize("text, expected", [
    ("35.000,50", 35000.50),
    ("128.456,12", 128456.12),
    ("5,4321", 5.4321),
    ("-0,0123", -0.0123),
])
def test_parse_number_comma_locale(text, expected):
    assert parse_number(text, COMMA) == pytest.approx(expected)


def test_parse_percent_strips_sign_and_symbol():
    """'+1.25%' e '+1,25%' viram 1.25 conforme o formato da página."""
    assert parse_percent("+1.25%", DOT) == pytest.approx(1.25)
    assert parse_percent("+1,25%", COMMA) == pytest.approx(1.25)
    assert parse_percent("-0.40%", DOT) == pytest.approx(-0.40)
    assert parse_percent("−0,40%", COMMA) == pytest.approx(-0.40)


@pytest.mark.parametrize("text", [None, "", "   ", "-", "N/A", "%", "abc"])
def test_empty_or_non_numeric_returns_none(text):
    assert parse_number(text, DOT) is None
    assert parse_percent(text, COMMA) is None


def test_lenient_prefix_parse():
    """Lixo depois do número é ignorado (comportamento de parseFloat)."""
    assert parse_number("12.5abc", DOT) == pytest.approx(12.5)


def test_thousands_separator_is_removed_not_converted():
    # No formato US a vírgula nunca vira ponto decimal
    assert parse_number("1,250", DOT) == pytest.approx(1250.0)
    # No formato BR o ponto é sempre milhar
    assert parse_number("1.250", COMMA) == pytest.approx(1250.0)


def test_unknown_locale_raises():
    with pytest.raises(ValueError):
        parse_number("1.0", "space")


def _brazilian(text):
    # 1,234.56 -> 1.234,56
    return text.replace(",", "_").replace(".", ",").replace("_", ".")


@pytest.mark.parametrize("value", [0.0, 0.07, 1.25, -0.4, 35000.5, -98765.43, 1234567.89])
def test_formatted_values_round_trip(value):
    """O que a página exibe volta ao mesmo número nos dois formatos."""
    us_text = f"{value:,.2f}"
    us_percent = f"{value:+,.2f}%"

    assert parse_number(us_text, DOT) == pytest.approx(value)
    assert parse_percent(us_percent, DOT) == pytest.approx(value)
    assert parse_number(_brazilian(us_text), COMMA) == pytest.approx(value)
    assert parse_percent(_brazilian(us_percent), COMMA) == pytest.approx(value)

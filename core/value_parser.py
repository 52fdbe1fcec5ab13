# ARQUIVO: core/value_parser.py
import math
import re

DOT = "dot"      # Páginas US: 35,000.50 (vírgula = milhar)
COMMA = "comma"  # Páginas BR: 35.000,50 (ponto = milhar)
LOCALES = (DOT, COMMA)

# Prefixo numérico aceito (equivalente a um parseFloat leniente: "1.25abc" -> 1.25)
_NUMERIC_PREFIX = re.compile(r"[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?")


def _normalize(text, locale: str):
    if locale not in LOCALES:
        raise ValueError(f"Locale desconhecido: {locale!r} (use 'dot' ou 'comma')")

    if text is None:
        return ""

    value = str(text).strip()
    value = value.replace("−", "-")  # sinal de menos unicode
    value = value.replace("%", "").replace("+", "")
    value = value.replace("\xa0", "").replace(" ", "")

    if locale == DOT:
        # Separador de milhar é removido, nunca convertido em ponto
        return value.replace(",", "")

    # Formato brasileiro: remove milhar e troca a vírgula decimal
    return value.replace(".", "").replace(",", ".")


def _to_float(value: str):
    match = _NUMERIC_PREFIX.match(value)
    if not match:
        return None
    parsed = float(match.group(0))
    if math.isnan(parsed) or math.isinf(parsed):
        return None
    return parsed


def parse_number(text, locale: str = DOT):
    """
    Converte o texto de uma célula em float.
    Retorna None para vazio ou não-numérico (nunca levanta para entrada ruim).
    """
    return _to_float(_normalize(text, locale))


def parse_percent(text, locale: str = DOT):
    """Igual a parse_number, aceitando '+1,25%' / '-0.40%'."""
    return _to_float(_normalize(text, locale))

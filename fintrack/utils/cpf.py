"""CPF (Brazilian taxpayer number) helpers."""
import re

_NON_DIGITS = re.compile(r"\D")


def normalize_cpf(value) -> str:
    """Strip punctuation, so ``123.456.789-09`` becomes ``12345678909``."""
    return _NON_DIGITS.sub("", value or "")


def _check_digit(digits: str) -> int:
    weight = len(digits) + 1
    total = sum(int(d) * (weight - i) for i, d in enumerate(digits))
    remainder = total % 11
    return 0 if remainder < 2 else 11 - remainder


def is_valid_cpf(value) -> bool:
    """Validate length and both mod-11 check digits.

    Sequences of a single repeated digit pass the arithmetic but are not
    issued, so they are rejected too.
    """
    cpf = normalize_cpf(value)
    if len(cpf) != 11 or cpf == cpf[0] * 11:
        return False
    first = _check_digit(cpf[:9])
    second = _check_digit(cpf[:9] + str(first))
    return cpf[9:] == f"{first}{second}"


def format_cpf(value) -> str:
    cpf = normalize_cpf(value)
    if len(cpf) != 11:
        return value or ""
    return f"{cpf[:3]}.{cpf[3:6]}.{cpf[6:9]}-{cpf[9:]}"

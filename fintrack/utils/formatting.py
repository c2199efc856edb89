from datetime import date, datetime

from flask import current_app


def format_currency(value, fmt=None):
    """Format a number with the configured ``CURRENCY_FORMAT``.

    The format string is written with Python's ``,`` and ``.`` separators; they
    are swapped for ``CURRENCY_THOUSANDS_SEP`` and ``CURRENCY_DECIMAL_SEP``
    afterwards, so the default renders ``R$ 1.234,56``.
    """
    config = current_app.config
    if fmt is None:
        fmt = config.get("CURRENCY_FORMAT", "R$ {:,.2f}")
    try:
        val = float(value) if value is not None else 0.0
    except (TypeError, ValueError):
        val = 0.0
    decimal_sep = config.get("CURRENCY_DECIMAL_SEP", ",")
    thousands_sep = config.get("CURRENCY_THOUSANDS_SEP", ".")
    text = fmt.format(val)
    return text.replace(",", "\0").replace(".", decimal_sep).replace("\0", thousands_sep)


def format_date(value, fmt=None):
    if value is None:
        return ""
    if isinstance(value, str):
        try:
            value = date.fromisoformat(value)
        except ValueError:
            return value
    if fmt is None:
        fmt = current_app.config.get("DATE_FORMAT", "%d/%m/%Y")
    if isinstance(value, (date, datetime)):
        return value.strftime(fmt)
    return str(value)

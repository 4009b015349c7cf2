import base64
import binascii
import random
import re
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path

from platformdirs import user_config_path, user_log_path

APP_NAME = 'quickpaper'
CONFIG_FILENAME = 'config.toml'
TOKEN_FILENAME = 'token.txt'

PDF_MIMETYPE = 'application/pdf'
CENTS = Decimal('0.01')
DATA_URI_RE = re.compile(r'^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?:;[^,]*)?;base64,', re.IGNORECASE)


def config_path() -> Path:
    return user_config_path(APP_NAME) / CONFIG_FILENAME


def token_path() -> Path:
    return user_config_path(APP_NAME) / TOKEN_FILENAME


def logs_path() -> Path:
    return user_log_path(APP_NAME)


def bytes_to_data_uri(content: bytes, mime: str) -> str:
    b64 = base64.b64encode(content).decode()
    return f'data:{mime};base64,{b64}'


def data_uri_to_bytes(value: str) -> bytes:
    """Decode a base64 data URI (or a bare base64 string) into bytes.

    Raises:
        ValueError: when the payload is not valid base64
    """
    payload = DATA_URI_RE.sub('', value.strip(), count=1)
    try:
        return base64.b64decode(payload, validate=True)
    except binascii.Error as e:
        raise ValueError(f'Invalid base64 payload: {e}') from e


def money(value) -> Decimal:
    """Round a monetary value to cents, half-up.

    Floats go through their shortest repr so that 9.995 stays 9.995 instead of
    its binary expansion.
    """
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def format_money(currency: str, value) -> str:
    return f'{currency} {money(value)}'


def format_rate(rate) -> str:
    """Tax rate without trailing zeros: 10.0 -> '10', 7.50 -> '7.5'"""
    if isinstance(rate, float):
        rate = str(rate)
    return f'{Decimal(rate).normalize():f}'


def normalize_handle(handle: str) -> str:
    """Messaging destination in international format: '+' followed by digits only.

    >>> normalize_handle('+977 984-123-4567')
    '+9779841234567'
    """
    return '+' + re.sub(r'\D', '', handle)


def compute_totals(items, tax_rate) -> tuple[Decimal, Decimal, Decimal]:
    """Subtotal, tax and total (each rounded to cents) for a list of LineItem."""
    subtotal = money(sum((item.line_total for item in items), Decimal(0)))
    tax = money(subtotal * Decimal(str(tax_rate)) / 100)
    return subtotal, tax, subtotal + tax


def new_receipt_number() -> str:
    return f'REC-{random.randint(100000, 999999)}'

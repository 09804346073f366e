"""Token math utilities - exact raw/UI amount scaling."""
import logging
from decimal import Decimal

logger = logging.getLogger(__name__)


def to_raw_int(value) -> int:
    """Coerce an on-chain amount (int, numeric string) to int."""
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return int(value)
    raise TypeError(f"raw amount must be int or str, got {type(value).__name__}")


def convert_to_ui_amount(raw, decimals: int = 9) -> float:
    """raw / 10**decimals using decimal scaling, then a single rounding to float.

    1_500_000_000 with 9 decimals is exactly 1.5.
    """
    if decimals < 0:
        raise ValueError(f"decimals must be >= 0, got {decimals}")
    return float(Decimal(to_raw_int(raw)).scaleb(-decimals))


def sanitize_token_amount(value, label="amount"):
    value = to_raw_int(value)
    if value < 0:
        logger.warning(f"[SANITIZE] {label} was {value}, clamping to 0")
        return 0
    return value

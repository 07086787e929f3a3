"""Conversion helpers between ether and wei."""

from decimal import Decimal
from typing import Union

WEI_PER_ETHER = 10 ** 18
WEI_PER_GWEI = 10 ** 9


def parse_ether(amount: Union[str, int, Decimal]) -> int:
    """Convert an ether amount to wei.

    Args:
        amount: Ether amount, e.g. "0.1"

    Returns:
        Integer amount in wei

    Raises:
        ValueError: If the amount has more precision than one wei
    """
    wei = Decimal(str(amount)) * WEI_PER_ETHER
    if wei != wei.to_integral_value():
        raise ValueError(f"Amount {amount} is not a whole number of wei")
    return int(wei)


def parse_gwei(amount: Union[str, int, Decimal]) -> int:
    return int(Decimal(str(amount)) * WEI_PER_GWEI)


def format_ether(wei: int) -> str:
    """Format a wei amount as an ether string without trailing zeros."""
    value = (Decimal(wei) / WEI_PER_ETHER).normalize()
    return format(value, 'f')

"""
Formatters utility.

Utility functions for formatting amounts in notifications.
"""

from decimal import ROUND_DOWN, Decimal


def format_crypto(amount: Decimal | float | str, max_decimals: int = 6) -> str:
    """
    Format crypto amount for display.

    Keeps up to max_decimals fractional digits (truncated, not rounded),
    trims trailing zeros and groups thousands.

    Args:
        amount: Amount to format
        max_decimals: Maximum fractional digits

    Returns:
        Formatted string like "1,234.5" or "0.000123"
    """
    value = Decimal(str(amount))
    quantum = Decimal(1).scaleb(-max_decimals)
    value = value.quantize(quantum, rounding=ROUND_DOWN)

    text = f"{value:,.{max_decimals}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text in ("-0", ""):
        text = "0"
    return text


def escape_md(text: str | None) -> str:
    """
    Escape special characters for Markdown V1.

    Escapes: _ * ` [

    Args:
        text: Input text

    Returns:
        Escaped text safe for Markdown
    """
    if not text:
        return ""
    return str(text).replace("_", "\\_").replace("*", "\\*").replace("`", "\\`").replace("[", "\\[")

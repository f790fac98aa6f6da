"""
Helper utilities
"""
from datetime import datetime
from typing import Optional


def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Safely divide two numbers"""
    try:
        return numerator / denominator if denominator != 0 else default
    except (TypeError, ZeroDivisionError):
        return default


def format_currency(amount: float, currency: str = "LKR", decimals: int = 2) -> str:
    """Format amount as currency using en-LK style grouping (LKR 1,250.00)"""
    symbols = {"LKR": "LKR ", "USD": "$"}
    symbol = symbols.get(currency, f"{currency} ")
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.{decimals}f}"


def format_date(value: Optional[datetime]) -> str:
    """Display format: day-month(short)-year, e.g. 03 Feb 2024"""
    if value is None:
        return ""
    return value.strftime("%d %b %Y")

# quickride/utils.py
"""
Identifier and formatting utilities for the QuickRide engine.

Pure functions: Brazilian national-ID (CPF) checksum validation, display
masks for CPF and phone numbers, and small display formatters.
"""

from __future__ import annotations

import re
import uuid
from datetime import datetime
from typing import Optional

_NON_DIGITS = re.compile(r"\D")
_COMPLETE_PHONE = re.compile(r"\(\d{2}\) \d{5}-\d{4}")


def digits_only(value: str) -> str:
    """Strip everything but digits."""
    return _NON_DIGITS.sub("", value)


def new_id() -> str:
    """Fresh opaque identifier for rides and chat messages."""
    return uuid.uuid4().hex


def mask_cpf(value: str) -> str:
    """
    Format a (possibly partial) CPF as ``000.000.000-00``.

    Works on partial input, so it can be applied keystroke by keystroke.
    Digits beyond the eleventh are dropped.

    Example:
        >>> mask_cpf("5299822472")
        '529.982.247-2'
    """
    masked = digits_only(value)
    masked = re.sub(r"(\d{3})(\d)", r"\1.\2", masked, count=1)
    masked = re.sub(r"(\d{3})(\d)", r"\1.\2", masked, count=1)
    masked = re.sub(r"(\d{3})(\d{1,2})", r"\1-\2", masked, count=1)
    return re.sub(r"(-\d{2})\d+?$", r"\1", masked, count=1)


def mask_hidden_cpf(cpf: str) -> str:
    """
    Hide the middle of a CPF for display: ``123.***.***-45``.

    Anything that is not a complete 11-digit CPF is returned unchanged.
    """
    clean = digits_only(cpf)
    if len(clean) != 11:
        return cpf
    return f"{clean[:3]}.***.***-{clean[9:11]}"


def mask_phone(value: str) -> str:
    """Format a (possibly partial) mobile number as ``(00) 00000-0000``."""
    masked = digits_only(value)
    masked = re.sub(r"(\d{2})(\d)", r"(\1) \2", masked, count=1)
    masked = re.sub(r"(\d{5})(\d)", r"\1-\2", masked, count=1)
    return re.sub(r"(-\d{4})\d+?$", r"\1", masked, count=1)


def is_complete_phone(value: str) -> bool:
    """True for a fully formatted mobile number, e.g. ``(93) 98118-3360``."""
    return _COMPLETE_PHONE.fullmatch(value) is not None


def _check_digit(digits: str, first_weight: int) -> int:
    total = sum(int(d) * (first_weight - i) for i, d in enumerate(digits))
    rest = (total * 10) % 11
    return 0 if rest == 10 else rest


def validate_cpf(cpf: str) -> bool:
    """
    Validate a CPF with the two mod-11 check digits.

    Formatting characters are ignored. Sequences of a single repeated
    digit (``111.111.111-11``) pass the checksum but are rejected.

    Args:
        cpf: CPF, formatted or digits only

    Returns:
        True if the CPF is well formed and both check digits match
    """
    clean = digits_only(cpf)
    if len(clean) != 11:
        return False
    if len(set(clean)) == 1:
        return False

    if _check_digit(clean[:9], 10) != int(clean[9]):
        return False
    return _check_digit(clean[:10], 11) == int(clean[10])


def format_clock(timestamp: float) -> str:
    """Local ``HH:MM`` for an epoch timestamp."""
    return datetime.fromtimestamp(timestamp).strftime("%H:%M")


def format_distance(distance_km: Optional[float]) -> str:
    if distance_km is None:
        return "-"
    return f"{distance_km:.1f} km"


def format_brl(amount: Optional[float]) -> str:
    """
    Format an amount as Brazilian reais.

    Example:
        >>> format_brl(1234.5)
        'R$ 1.234,50'
    """
    if amount is None:
        return "-"
    us_style = f"{amount:,.2f}"
    return "R$ " + us_style.replace(",", "_").replace(".", ",").replace("_", ".")


def approach_progress_pct(distance_km: Optional[float]) -> float:
    """
    Progress bar fill for an approaching driver, in percent.

    Every kilometre left takes 20% off the bar, never below 10%.
    """
    if distance_km is None:
        return 0.0
    return min(100.0, max(10.0, 100.0 - distance_km * 20))

"""Display formatting for amounts"""

import math


def fmt_amount(value: float) -> str:
    """French grouping: 1234567.6 -> '1 234 568'"""
    rounded = int(math.floor((value or 0) + 0.5))
    return f"{rounded:,}".replace(",", " ")


def fmt_fcfa(value: float) -> str:
    return f"{fmt_amount(value)} FCFA"


def fmt_billions(value: float) -> str:
    """120_000_000_000 -> '120 Md'"""
    return f"{fmt_amount(value / 1_000_000_000)} Md"

"""Accounting core of a yield-farming protocol: positions, deposit bonuses,
yield accumulation, revenue splits and capped emission."""

__version__ = "0.3.0"

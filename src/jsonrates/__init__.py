# src/jsonrates/__init__.py
"""
JsonRates - Cached Exchange Rates for Money Libraries

A thread-safe, time-bounded cache of currency exchange rates fetched from
the jsonrates.com API, usable as a pluggable rate source ("bank") for a
money-arithmetic library.
"""

__version__ = "0.2.0"

"""Collateralization monitor for the Mars Red Bank lending contract."""

__version__ = "0.1.0"

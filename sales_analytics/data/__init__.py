"""
Data Generation Module
"""
from .generators import SalesGenerator

__all__ = [
    "SalesGenerator",
]

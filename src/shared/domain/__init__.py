"""
Shared Domain Layer
Calendar rules and the lookup result type, with no framework dependencies
"""
from src.shared.domain.result import Available, Lookup, Unavailable, attempt

__all__ = [
    "Available",
    "Lookup",
    "Unavailable",
    "attempt",
]

"""
Domain package for pgdbgen.

Exports the record models and the error taxonomy. The synthesizer lives in
`pgdbgen.domain.synthesizer` and is imported from there, since it depends on
the settings module.
"""

from pgdbgen.domain.errors import (
    ConfigurationError,
    ConnectivityError,
    DbgenError,
    ShortfallError,
    UniqueConflictError,
    WriteError,
)
from pgdbgen.domain.models import Account, BuyingStat, Payment, Product, Record, round2

__all__ = [
    "Account",
    "BuyingStat",
    "Payment",
    "Product",
    "Record",
    "round2",
    "DbgenError",
    "ConfigurationError",
    "ConnectivityError",
    "UniqueConflictError",
    "WriteError",
    "ShortfallError",
]

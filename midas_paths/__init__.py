__version__ = "0.1.0"

from midas_paths.core.errors import (
    LedgerError,
    MidasError,
    SolvencyError,
    ValidationError,
)
from midas_paths.core.ledger import LedgerClient, Web3LedgerClient

__all__ = [
    "__version__",
    "LedgerClient",
    "LedgerError",
    "MidasError",
    "SolvencyError",
    "ValidationError",
    "Web3LedgerClient",
]

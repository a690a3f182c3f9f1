from __future__ import annotations

from typing import Any


class MidasError(Exception):
    """Base error for every on-chain operation.

    Carries the name of the operation that raised it so operators can tell a
    configuration problem from an on-chain revert without reading a traceback.
    """

    code = "error"

    def __init__(
        self, operation: str, message: str, *, details: Any | None = None
    ) -> None:
        self.operation = operation
        self.message = message
        self.details = details
        super().__init__(f"{operation}: {message}")


class ValidationError(MidasError):
    code = "validation_error"


class SolvencyError(MidasError):
    code = "solvency_violation"


class LedgerError(MidasError):
    """A read or transaction failed at the node or reverted on-chain.

    Sequences abort on this error. Nothing is retried and prior transactions
    stay on-chain.
    """

    code = "ledger_error"

    @classmethod
    def wrap(cls, operation: str, exc: BaseException) -> LedgerError:
        details: dict[str, Any] = {"cause": type(exc).__name__}
        txn_hash = getattr(exc, "txn_hash", None)
        if txn_hash:
            details["txn_hash"] = txn_hash
        return cls(operation, str(exc) or type(exc).__name__, details=details)

from __future__ import annotations

from abc import ABC
from typing import Any

from loguru import logger

from midas_paths.core.config import get_chain_id
from midas_paths.core.ledger import LedgerClient


class BaseAdapter(ABC):
    adapter_type: str | None = None

    def __init__(
        self,
        name: str,
        ledger: LedgerClient,
        config: dict[str, Any] | None = None,
        *,
        chain_id: int | None = None,
    ):
        self.name = name
        self.ledger = ledger
        self.config = config or {}
        self.chain_id = int(chain_id) if chain_id is not None else get_chain_id()
        self.logger = logger.bind(adapter=self.__class__.__name__)

    async def close(self) -> None:
        pass

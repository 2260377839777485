from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import SyncFailureType
from .model import SyncFailure


class SyncFailureRepository(Protocol):
    def record(self, failure: SyncFailure) -> int:
        raise NotImplementedError

    def list_unresolved(self, *, failure_type: Optional[SyncFailureType] = None, limit: int = 200) -> Sequence[SyncFailure]:
        raise NotImplementedError

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from loguru import logger


@dataclass(frozen=True)
class OfferResult:
    accepted: bool
    version: int


class VersionGate:
    """Read-your-writes guard for a single plan snapshot.

    The local writer bumps the version on every optimistic mutation. Snapshots
    arriving from elsewhere (broadcasts, refetches) are only taken when their
    version is at least the last applied one, so a stale echo can never undo
    a local edit.
    """

    def __init__(self, version: int = 0, snapshot: Any = None) -> None:
        self._version = version
        self._snapshot = snapshot

    @property
    def version(self) -> int:
        return self._version

    @property
    def snapshot(self) -> Any:
        return self._snapshot

    def record_local(self, snapshot: Any) -> int:
        self._version += 1
        self._snapshot = snapshot
        return self._version

    def offer(self, version: Optional[int], snapshot: Any) -> OfferResult:
        if version is None or version < self._version:
            logger.debug("rejected stale snapshot version={} current={}", version, self._version)
            return OfferResult(accepted=False, version=self._version)
        self._version = version
        self._snapshot = snapshot
        return OfferResult(accepted=True, version=version)

"""
Mint decimals lookup.

``MintDecimalsCache`` is the long-lived, process-wide store a host fills from
observed token balances or an external metadata service. Decoding never reads
it directly: each decode call receives a ``MintDecimalsSnapshot`` so the same
mint cannot resolve to two different values within one transaction.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator, Mapping
from types import MappingProxyType

from meme_decoder.core.pubkeys import SOL_DECIMALS, SOL_MINT
from meme_decoder.errors import MintDecimalsError
from meme_decoder.utils.logger import get_logger

logger = get_logger(__name__)


class MintDecimalsSnapshot(Mapping[str, int]):
    """Immutable mint -> decimals mapping, consistent for one decode call."""

    __slots__ = ("_data", "version")

    def __init__(self, data: Mapping[str, int] | None = None, version: int = 0):
        merged = {SOL_MINT: SOL_DECIMALS}
        if data:
            merged.update(data)
        self._data = MappingProxyType(merged)
        self.version = version

    def __getitem__(self, mint: str) -> int:
        return self._data[mint]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def require(self, mint: str) -> int:
        """Decimals for ``mint``; raises MintDecimalsError when unknown."""
        try:
            return self._data[mint]
        except KeyError:
            raise MintDecimalsError(mint) from None

    def merged(self, observed: Mapping[str, int]) -> MintDecimalsSnapshot:
        """New snapshot with ``observed`` values layered on top."""
        if not observed:
            return self
        data = dict(self._data)
        data.update(observed)
        return MintDecimalsSnapshot(data, self.version)

    def __repr__(self) -> str:
        return f"MintDecimalsSnapshot(version={self.version}, mints={len(self._data)})"


EMPTY_SNAPSHOT = MintDecimalsSnapshot()


class MintDecimalsCache:
    """Thread-safe process-wide mint decimals store with versioned snapshots."""

    def __init__(self, initial: Mapping[str, int] | None = None):
        self._lock = threading.Lock()
        self._data: dict[str, int] = dict(initial or {})
        self._version = 0
        self._snapshot: MintDecimalsSnapshot | None = None

    def update(self, decimals: Mapping[str, int]) -> int:
        """Merge new values; returns how many entries changed."""
        changed = 0
        with self._lock:
            for mint, value in decimals.items():
                value = int(value)
                if self._data.get(mint) != value:
                    self._data[mint] = value
                    changed += 1
            if changed:
                self._version += 1
                self._snapshot = None
        if changed:
            logger.debug(f"[MINT_DECIMALS] {changed} mints updated, version={self._version}")
        return changed

    def observe_token_balances(self, balances) -> int:
        """Record decimals from TokenBalance rows of a decoded transaction."""
        return self.update({b.mint: b.decimals for b in balances})

    def snapshot(self) -> MintDecimalsSnapshot:
        """Copy-on-read view; later updates never affect a snapshot already handed out."""
        with self._lock:
            if self._snapshot is None:
                self._snapshot = MintDecimalsSnapshot(self._data, self._version)
            return self._snapshot

    def get(self, mint: str) -> int | None:
        with self._lock:
            return self._data.get(mint)

    @property
    def version(self) -> int:
        return self._version

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

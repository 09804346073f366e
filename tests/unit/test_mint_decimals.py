"""Unit tests for mint decimals snapshots and the process-wide cache"""
import threading

import pytest

from meme_decoder.core.mint_decimals import EMPTY_SNAPSHOT, MintDecimalsCache, MintDecimalsSnapshot
from meme_decoder.core.pubkeys import SOL_MINT
from meme_decoder.errors import MintDecimalsError
from meme_decoder.interfaces.models import TokenBalance


class TestSnapshot:
    def test_sol_always_known(self):
        assert EMPTY_SNAPSHOT[SOL_MINT] == 9
        assert MintDecimalsSnapshot({"Mint": 6}).require(SOL_MINT) == 9

    def test_require_unknown(self):
        with pytest.raises(MintDecimalsError) as exc_info:
            EMPTY_SNAPSHOT.require("Unknown")
        assert exc_info.value.mint == "Unknown"

    def test_immutable(self):
        snapshot = MintDecimalsSnapshot({"Mint": 6})
        with pytest.raises(TypeError):
            snapshot["Mint"] = 9

    def test_merged_layers_observed(self):
        base = MintDecimalsSnapshot({"A": 6, "B": 9}, version=3)
        merged = base.merged({"B": 4, "C": 2})
        assert dict(merged) == {SOL_MINT: 9, "A": 6, "B": 4, "C": 2}
        assert merged.version == 3
        assert base["B"] == 9
        assert base.merged({}) is base


class TestCache:
    def test_update_counts_changes(self):
        cache = MintDecimalsCache({"A": 6})
        assert cache.update({"A": 6, "B": 9}) == 1
        assert cache.version == 1
        assert cache.update({"A": 6}) == 0
        assert cache.version == 1
        assert cache.get("B") == 9
        assert len(cache) == 2

    def test_snapshot_not_affected_by_later_updates(self):
        cache = MintDecimalsCache({"A": 6})
        snapshot = cache.snapshot()
        cache.update({"A": 9, "B": 2})
        assert snapshot["A"] == 6
        assert "B" not in snapshot
        assert cache.snapshot()["A"] == 9
        assert cache.snapshot().version == 1

    def test_snapshot_reused_until_change(self):
        cache = MintDecimalsCache()
        assert cache.snapshot() is cache.snapshot()

    def test_observe_token_balances(self):
        cache = MintDecimalsCache()
        rows = [TokenBalance("Acc1", "A", "Owner", 10, 6), TokenBalance("Acc2", "B", None, 0, 9)]
        assert cache.observe_token_balances(rows) == 2
        assert cache.get("A") == 6

    def test_concurrent_updates(self):
        cache = MintDecimalsCache()

        def writer(offset):
            for i in range(200):
                cache.update({f"Mint{offset}-{i}": i % 10})
                cache.snapshot()

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert len(cache) == 800
        assert len(cache.snapshot()) == 801

"""
Normalized view over a JSON-RPC ``getTransaction`` result.

Accepts both the ``json`` encoding (compiled instructions with account
indexes, base58 data) and ``jsonParsed`` (account addresses inline, token and
system instructions pre-decoded by the node). Versioned transactions get their
lookup-table addresses appended after the static keys: writable first, then
readonly.
"""

from __future__ import annotations

from collections.abc import Mapping
from functools import cached_property
from typing import Any

import base58

from meme_decoder.core.mint_decimals import EMPTY_SNAPSHOT, MintDecimalsSnapshot
from meme_decoder.core.pubkeys import SOL_DECIMALS, SOL_MINT
from meme_decoder.errors import MintDecimalsError
from meme_decoder.interfaces.models import (
    BalanceChange,
    RawInstruction,
    TokenAmount,
    TokenBalance,
)

_MISSING = object()


def _b58decode(data: str | None) -> bytes:
    if not data:
        return b""
    return base58.b58decode(data)


class TransactionView:
    """Read-only accessors for one confirmed transaction."""

    def __init__(
        self,
        tx: Mapping[str, Any],
        mint_decimals: MintDecimalsSnapshot | Mapping[str, int] | None = None,
    ):
        if "transaction" not in tx:
            raise ValueError("not a getTransaction result: missing 'transaction'")
        self._tx = tx
        self._meta: Mapping[str, Any] = tx.get("meta") or {}
        self._message: Mapping[str, Any] = tx["transaction"].get("message") or {}
        if mint_decimals is None:
            mint_decimals = EMPTY_SNAPSHOT
        elif not isinstance(mint_decimals, MintDecimalsSnapshot):
            mint_decimals = MintDecimalsSnapshot(mint_decimals)
        self._external_decimals = mint_decimals

    # ------------------------------------------------------------------
    # identity
    # ------------------------------------------------------------------

    @property
    def signature(self) -> str:
        signatures = self._tx["transaction"].get("signatures") or []
        return signatures[0] if signatures else ""

    @property
    def slot(self) -> int:
        return int(self._tx.get("slot") or 0)

    @property
    def block_time(self) -> int:
        return int(self._tx.get("blockTime") or 0)

    @property
    def is_failed(self) -> bool:
        return self._meta.get("err") is not None

    @property
    def fee(self) -> TokenAmount:
        return TokenAmount(int(self._meta.get("fee") or 0), SOL_DECIMALS)

    @property
    def compute_units(self) -> int:
        return int(self._meta.get("computeUnitsConsumed") or 0)

    # ------------------------------------------------------------------
    # accounts
    # ------------------------------------------------------------------

    @cached_property
    def account_keys(self) -> list[str]:
        raw_keys = self._message.get("accountKeys") or []
        if raw_keys and isinstance(raw_keys[0], dict):
            # jsonParsed already inlines lookup-table addresses
            return [k["pubkey"] for k in raw_keys]
        keys = list(raw_keys)
        loaded = self._meta.get("loadedAddresses") or {}
        keys.extend(loaded.get("writable") or [])
        keys.extend(loaded.get("readonly") or [])
        return keys

    @cached_property
    def signers(self) -> list[str]:
        raw_keys = self._message.get("accountKeys") or []
        if raw_keys and isinstance(raw_keys[0], dict):
            return [k["pubkey"] for k in raw_keys if k.get("signer")]
        header = self._message.get("header") or {}
        count = int(header.get("numRequiredSignatures") or 1)
        return list(raw_keys[:count])

    @property
    def signer(self) -> str:
        return self.signers[0] if self.signers else ""

    def get_account_key(self, index: int) -> str:
        return self.account_keys[index]

    def get_account_index(self, address: str) -> int:
        try:
            return self.account_keys.index(address)
        except ValueError:
            return -1

    # ------------------------------------------------------------------
    # instructions
    # ------------------------------------------------------------------

    def _normalize_instruction(self, ix: Mapping[str, Any]) -> RawInstruction:
        if "programIdIndex" in ix:
            keys = self.account_keys
            return RawInstruction(
                program_id=keys[ix["programIdIndex"]],
                accounts=tuple(keys[i] for i in ix.get("accounts") or ()),
                data=_b58decode(ix.get("data")),
                stack_height=ix.get("stackHeight"),
            )
        parsed = ix.get("parsed")
        return RawInstruction(
            program_id=ix["programId"],
            accounts=tuple(ix.get("accounts") or ()),
            data=_b58decode(ix.get("data")),
            parsed=parsed if isinstance(parsed, dict) else None,
            stack_height=ix.get("stackHeight"),
        )

    @cached_property
    def instructions(self) -> list[RawInstruction]:
        """Outer instructions in transaction order."""
        return [self._normalize_instruction(ix) for ix in self._message.get("instructions") or ()]

    @cached_property
    def _inner_by_outer(self) -> dict[int, list[RawInstruction]]:
        inner: dict[int, list[RawInstruction]] = {}
        for group in self._meta.get("innerInstructions") or ():
            inner.setdefault(int(group["index"]), []).extend(
                self._normalize_instruction(ix) for ix in group.get("instructions") or ()
            )
        return inner

    @property
    def inner_outer_indexes(self) -> list[int]:
        return sorted(self._inner_by_outer)

    def inner_instructions_of(self, outer_index: int) -> list[RawInstruction]:
        """CPI trace of one outer instruction, in execution order."""
        return self._inner_by_outer.get(outer_index, [])

    def get_instruction(self, outer_index: int) -> RawInstruction | None:
        if 0 <= outer_index < len(self.instructions):
            return self.instructions[outer_index]
        return None

    def get_inner_instruction(self, outer_index: int, inner_index: int) -> RawInstruction | None:
        inner = self.inner_instructions_of(outer_index)
        if 0 <= inner_index < len(inner):
            return inner[inner_index]
        return None

    def accounts_of(self, instruction: RawInstruction) -> tuple[str, ...]:
        return instruction.accounts

    # ------------------------------------------------------------------
    # balances
    # ------------------------------------------------------------------

    @property
    def pre_balances(self) -> list[int]:
        return [int(b) for b in self._meta.get("preBalances") or ()]

    @property
    def post_balances(self) -> list[int]:
        return [int(b) for b in self._meta.get("postBalances") or ()]

    def _token_balances(self, key: str) -> list[TokenBalance]:
        rows = []
        keys = self.account_keys
        for row in self._meta.get(key) or ():
            ui = row.get("uiTokenAmount") or {}
            index = int(row["accountIndex"])
            rows.append(TokenBalance(
                account=keys[index] if index < len(keys) else "",
                mint=row["mint"],
                owner=row.get("owner"),
                amount=int(ui.get("amount") or 0),
                decimals=int(ui.get("decimals") or 0),
                program_id=row.get("programId"),
            ))
        return rows

    @cached_property
    def pre_token_balances(self) -> list[TokenBalance]:
        return self._token_balances("preTokenBalances")

    @cached_property
    def post_token_balances(self) -> list[TokenBalance]:
        return self._token_balances("postTokenBalances")

    @cached_property
    def spl_token_map(self) -> dict[str, TokenBalance]:
        """Token account -> balance row (post wins), used to resolve mint/owner of transfers."""
        accounts: dict[str, TokenBalance] = {}
        for row in (*self.pre_token_balances, *self.post_token_balances):
            accounts[row.account] = row
        return accounts

    @cached_property
    def spl_decimals_map(self) -> dict[str, int]:
        decimals = {SOL_MINT: SOL_DECIMALS}
        for row in (*self.pre_token_balances, *self.post_token_balances):
            decimals[row.mint] = row.decimals
        return decimals

    @cached_property
    def mint_decimals(self) -> MintDecimalsSnapshot:
        """External snapshot with this transaction's observed decimals layered on top."""
        return self._external_decimals.merged(self.spl_decimals_map)

    def get_token_decimals(self, mint: str, default: Any = _MISSING) -> int:
        """Decimals of ``mint``; raises MintDecimalsError unless a default is given."""
        try:
            return self.mint_decimals.require(mint)
        except MintDecimalsError:
            if default is _MISSING:
                raise
            return default

    def get_token_account_owner(self, account: str) -> str | None:
        row = self.spl_token_map.get(account)
        return row.owner if row else None

    def get_account_sol_balance_changes(self) -> dict[str, BalanceChange]:
        """Accounts whose lamport balance moved."""
        changes = {}
        for key, pre, post in zip(self.account_keys, self.pre_balances, self.post_balances):
            if pre != post:
                changes[key] = BalanceChange(pre, post, SOL_DECIMALS)
        return changes

    def get_sol_balance_change(self, address: str) -> BalanceChange | None:
        index = self.get_account_index(address)
        pre, post = self.pre_balances, self.post_balances
        if index < 0 or index >= len(pre) or index >= len(post):
            return None
        return BalanceChange(pre[index], post[index], SOL_DECIMALS)

    def get_account_token_balance_changes(self) -> dict[str, dict[str, BalanceChange]]:
        """owner -> mint -> change, summed over that owner's token accounts."""
        totals: dict[tuple[str, str], list[int]] = {}
        decimals: dict[str, int] = {}
        for rows, slot in ((self.pre_token_balances, 0), (self.post_token_balances, 1)):
            for row in rows:
                owner = row.owner or row.account
                entry = totals.setdefault((owner, row.mint), [0, 0])
                entry[slot] += row.amount
                decimals[row.mint] = row.decimals
        changes: dict[str, dict[str, BalanceChange]] = {}
        for (owner, mint), (pre, post) in totals.items():
            if pre != post:
                changes.setdefault(owner, {})[mint] = BalanceChange(pre, post, decimals[mint])
        return changes

    def get_token_balance_change(self, owner: str, mint: str) -> BalanceChange | None:
        """Change of ``owner``'s holdings of ``mint``; None when neither snapshot has a row."""
        pre = [r for r in self.pre_token_balances if r.mint == mint and (r.owner == owner or r.account == owner)]
        post = [r for r in self.post_token_balances if r.mint == mint and (r.owner == owner or r.account == owner)]
        if not pre and not post:
            return None
        decimals = (pre or post)[0].decimals
        return BalanceChange(sum(r.amount for r in pre), sum(r.amount for r in post), decimals)

"""
Correlates token and native transfers with the instruction that caused them.

Transfers are read from the inner-instruction trace. Inside one outer
instruction's trace, every CPI into a non-system program opens a new group
``program:outer-inner``; the token/system transfers that follow belong to it.
Transfers issued directly as outer instructions are grouped under
``OUTER_TRANSFER_KEY``.
"""

from __future__ import annotations

import struct
from collections.abc import Iterable, Mapping
from dataclasses import replace
from types import MappingProxyType

from meme_decoder.core.pubkeys import (
    FEE_ACCOUNTS,
    SKIP_PROGRAM_IDS,
    SOL_DECIMALS,
    SOL_MINT,
    SYSTEM_PROGRAM_ID,
    SYSTEM_PROGRAMS,
    TOKEN_PROGRAMS,
)
from meme_decoder.core.transaction_view import TransactionView
from meme_decoder.interfaces.models import (
    DEFAULT_TRANSFER_KINDS,
    ClassifiedInstruction,
    RawInstruction,
    TokenAmount,
    TransferKind,
    TransferRecord,
)
from meme_decoder.utils.logger import get_logger

logger = get_logger(__name__)

OUTER_TRANSFER_KEY = "transfer"

# ============================================================================
# SPL TOKEN / SYSTEM INSTRUCTION TAGS
# ============================================================================

SPL_TRANSFER = 3
SPL_MINT_TO = 7
SPL_BURN = 8
SPL_TRANSFER_CHECKED = 12
SPL_MINT_TO_CHECKED = 14
SPL_BURN_CHECKED = 15
SYSTEM_TRANSFER = 2

_SPL_KINDS = {
    SPL_TRANSFER: TransferKind.TRANSFER,
    SPL_MINT_TO: TransferKind.MINT_TO,
    SPL_BURN: TransferKind.BURN,
    SPL_TRANSFER_CHECKED: TransferKind.TRANSFER_CHECKED,
    SPL_MINT_TO_CHECKED: TransferKind.MINT_TO_CHECKED,
    SPL_BURN_CHECKED: TransferKind.BURN_CHECKED,
}

_PARSED_KINDS = {kind.value: kind for kind in TransferKind}


class TransferCorrelator:
    """Immutable index ``programId:outer[-inner]`` -> transfers caused there."""

    def __init__(self, view: TransactionView, extra_kinds: Iterable[TransferKind] = ()):
        self._view = view
        self._kinds = frozenset(DEFAULT_TRANSFER_KINDS | set(extra_kinds))
        self._actions = MappingProxyType(self._build())

    def _build(self) -> dict[str, tuple[TransferRecord, ...]]:
        view = self._view
        actions: dict[str, list[TransferRecord]] = {}

        for outer_index in view.inner_outer_indexes:
            outer = view.get_instruction(outer_index)
            if outer is None or outer.program_id in SYSTEM_PROGRAMS:
                continue
            group_key = f"{outer.program_id}:{outer_index}"
            for inner_index, ix in enumerate(view.inner_instructions_of(outer_index)):
                if ix.program_id not in SYSTEM_PROGRAMS and ix.program_id not in SKIP_PROGRAM_IDS:
                    group_key = f"{ix.program_id}:{outer_index}-{inner_index}"
                    continue
                record = self.parse_transfer(ix, f"{outer_index}-{inner_index}")
                if record is not None:
                    actions.setdefault(group_key, []).append(record)

        for outer_index, ix in enumerate(view.instructions):
            record = self.parse_transfer(ix, str(outer_index))
            if record is not None:
                actions.setdefault(OUTER_TRANSFER_KEY, []).append(record)

        return {key: tuple(records) for key, records in actions.items()}

    # ------------------------------------------------------------------
    # instruction parsing
    # ------------------------------------------------------------------

    def parse_transfer(self, ix: RawInstruction, idx: str) -> TransferRecord | None:
        """Transfer carried by ``ix``, or None if it is not a wanted transfer kind."""
        if ix.program_id == SYSTEM_PROGRAM_ID:
            record = self._parse_system(ix, idx)
        elif ix.program_id in TOKEN_PROGRAMS:
            record = self._parse_token(ix, idx)
        else:
            return None
        if record is None or record.kind not in self._kinds:
            return None
        if record.destination in FEE_ACCOUNTS or record.destination_owner in FEE_ACCOUNTS:
            record = replace(record, is_fee=True)
        return record

    def _parse_system(self, ix: RawInstruction, idx: str) -> TransferRecord | None:
        if ix.parsed is not None:
            if ix.parsed.get("type") != "transfer":
                return None
            info = ix.parsed.get("info") or {}
            source, destination = info.get("source"), info.get("destination")
            lamports = int(info.get("lamports") or 0)
        else:
            if len(ix.data) < 12 or struct.unpack_from("<I", ix.data, 0)[0] != SYSTEM_TRANSFER:
                return None
            if len(ix.accounts) < 2:
                return None
            (lamports,) = struct.unpack_from("<Q", ix.data, 4)
            source, destination = ix.accounts[0], ix.accounts[1]
        if not source or not destination:
            return None
        return TransferRecord(
            kind=TransferKind.TRANSFER,
            program_id=ix.program_id,
            mint=SOL_MINT,
            source=source,
            destination=destination,
            amount=TokenAmount(lamports, SOL_DECIMALS),
            idx=idx,
            authority=source,
            source_owner=source,
            destination_owner=destination,
        )

    def _parse_token(self, ix: RawInstruction, idx: str) -> TransferRecord | None:
        if ix.parsed is not None:
            fields = self._token_fields_from_parsed(ix.parsed)
        else:
            fields = self._token_fields_from_data(ix)
        if fields is None:
            return None
        kind, source, destination, authority, mint, amount, decimals = fields
        if not source or not destination:
            return None

        token_map = self._view.spl_token_map
        if mint is None:
            row = token_map.get(destination) or token_map.get(source)
            mint = row.mint if row else None
        if mint is None:
            logger.debug(f"[CORRELATOR] {kind.value} at {idx}: mint not resolvable, dropped")
            return None
        if decimals is None:
            decimals = self._view.get_token_decimals(mint, default=None)
        if decimals is None:
            logger.debug(f"[CORRELATOR] {kind.value} at {idx}: decimals of {mint} unknown, dropped")
            return None

        return TransferRecord(
            kind=kind,
            program_id=ix.program_id,
            mint=mint,
            source=source,
            destination=destination,
            amount=TokenAmount(amount, decimals),
            idx=idx,
            authority=authority,
            source_owner=self._view.get_token_account_owner(source),
            destination_owner=self._view.get_token_account_owner(destination),
        )

    @staticmethod
    def _token_fields_from_data(ix: RawInstruction):
        data, accounts = ix.data, ix.accounts
        if not data or data[0] not in _SPL_KINDS or len(data) < 9:
            return None
        kind = _SPL_KINDS[data[0]]
        (amount,) = struct.unpack_from("<Q", data, 1)
        decimals = data[9] if len(data) >= 10 and kind in (
            TransferKind.TRANSFER_CHECKED, TransferKind.MINT_TO_CHECKED, TransferKind.BURN_CHECKED
        ) else None

        if kind is TransferKind.TRANSFER:
            # source, destination, authority
            if len(accounts) < 3:
                return None
            return kind, accounts[0], accounts[1], accounts[2], None, amount, None
        if kind is TransferKind.TRANSFER_CHECKED:
            # source, mint, destination, authority
            if len(accounts) < 4:
                return None
            return kind, accounts[0], accounts[2], accounts[3], accounts[1], amount, decimals
        if kind in (TransferKind.MINT_TO, TransferKind.MINT_TO_CHECKED):
            # mint, account, authority
            if len(accounts) < 3:
                return None
            return kind, accounts[0], accounts[1], accounts[2], accounts[0], amount, decimals
        # burn: account, mint, authority
        if len(accounts) < 3:
            return None
        return kind, accounts[0], accounts[1], accounts[2], accounts[1], amount, decimals

    @staticmethod
    def _token_fields_from_parsed(parsed: Mapping):
        kind = _PARSED_KINDS.get(parsed.get("type"))
        if kind is None:
            return None
        info = parsed.get("info") or {}
        token_amount = info.get("tokenAmount") or {}
        amount = int(token_amount.get("amount") or info.get("amount") or 0)
        decimals = token_amount.get("decimals")
        authority = info.get("authority") or info.get("multisigAuthority") or info.get("mintAuthority")

        if kind in (TransferKind.TRANSFER, TransferKind.TRANSFER_CHECKED):
            return kind, info.get("source"), info.get("destination"), authority, info.get("mint"), amount, decimals
        if kind in (TransferKind.MINT_TO, TransferKind.MINT_TO_CHECKED):
            return kind, info.get("mint"), info.get("account"), authority, info.get("mint"), amount, decimals
        return kind, info.get("account"), info.get("mint"), authority, info.get("mint"), amount, decimals

    # ------------------------------------------------------------------
    # lookups
    # ------------------------------------------------------------------

    @property
    def actions(self) -> Mapping[str, tuple[TransferRecord, ...]]:
        return self._actions

    def transfers_for_key(self, key: str) -> list[TransferRecord]:
        return list(self._actions.get(key, ()))

    def transfers_for(self, instruction: ClassifiedInstruction) -> list[TransferRecord]:
        """Transfers caused by ``instruction``; empty when it caused none."""
        return self.transfers_for_key(instruction.key)

    def transfers_for_program(self, program_id: str) -> list[TransferRecord]:
        prefix = f"{program_id}:"
        return [t for key, records in self._actions.items() if key.startswith(prefix) for t in records]

    def all_transfers(self) -> list[TransferRecord]:
        return [t for records in self._actions.values() for t in records]

    def __len__(self) -> int:
        return sum(len(records) for records in self._actions.values())

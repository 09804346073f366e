"""
Value records produced and consumed by the decoder.

Raw on-chain amounts are Python ints; ``to_dict`` renders them as decimal
strings so they survive JSON consumers without precision loss.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum
from typing import Any

from meme_decoder.core.pubkeys import SYSTEM_PROGRAM_ID
from meme_decoder.utils.token_math import convert_to_ui_amount


class Protocol(str, Enum):
    """Closed set of protocol families with a registered decoder."""
    PUMP_FUN = "Pumpfun"
    PUMP_SWAP = "Pumpswap"
    BOOP_FUN = "Boopfun"
    METEORA_DBC = "MeteoraDBC"
    MOONIT = "Moonit"
    RAYDIUM_LAUNCHPAD = "RaydiumLaunchpad"
    SUGAR = "Sugar"
    HEAVEN = "Heaven"
    RAYDIUM = "Raydium"
    METEORA = "Meteora"
    ORCA = "Orca"


class EventType(str, Enum):
    CREATE = "CREATE"
    BUY = "BUY"
    SELL = "SELL"
    SWAP = "SWAP"
    COMPLETE = "COMPLETE"
    MIGRATE = "MIGRATE"


class TradeType(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    SWAP = "SWAP"


class TransferKind(str, Enum):
    TRANSFER = "transfer"
    TRANSFER_CHECKED = "transferChecked"
    MINT_TO = "mintTo"
    MINT_TO_CHECKED = "mintToChecked"
    BURN = "burn"
    BURN_CHECKED = "burnChecked"


DEFAULT_TRANSFER_KINDS = frozenset({TransferKind.TRANSFER, TransferKind.TRANSFER_CHECKED})
SUPPLY_TRANSFER_KINDS = (
    TransferKind.MINT_TO,
    TransferKind.BURN,
    TransferKind.MINT_TO_CHECKED,
    TransferKind.BURN_CHECKED,
)

_RAW_AMOUNT_FIELDS = {
    "amount", "amount_raw", "change", "fee", "protocol_fee", "platform_fee",
    "share_fee", "creator_fee", "total_supply", "pre", "post",
}


def _jsonable(value: Any, key: str | None = None) -> Any:
    if isinstance(value, Enum):
        return value.value
    if is_dataclass(value):
        return {f.name: _jsonable(getattr(value, f.name), f.name) for f in fields(value)}
    if isinstance(value, dict):
        return {k: _jsonable(v, k) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v, key) for v in value]
    if isinstance(value, bytes):
        return value.hex()
    if isinstance(value, int) and not isinstance(value, bool) and key in _RAW_AMOUNT_FIELDS:
        return str(value)
    return value


# ============================================================================
# TRANSACTION STRUCTURE
# ============================================================================

@dataclass(frozen=True)
class RawInstruction:
    """One instruction as it appears in the transaction, accounts resolved."""
    program_id: str
    accounts: tuple[str, ...] = ()
    data: bytes = b""
    # jsonParsed payload for programs the RPC node decodes itself
    parsed: dict | None = None
    stack_height: int | None = None


@dataclass(frozen=True)
class ClassifiedInstruction:
    program_id: str
    instruction: RawInstruction
    outer_index: int
    inner_index: int | None = None

    @property
    def idx(self) -> str:
        """Ordering key "outer-inner"; inner defaults to 0 for outer instructions."""
        return f"{self.outer_index}-{self.inner_index if self.inner_index is not None else 0}"

    @property
    def key(self) -> str:
        """Correlated-transfer key ``programId:outer[-inner]``."""
        if self.inner_index is None:
            return f"{self.program_id}:{self.outer_index}"
        return f"{self.program_id}:{self.outer_index}-{self.inner_index}"

    @property
    def data(self) -> bytes:
        return self.instruction.data

    @property
    def accounts(self) -> tuple[str, ...]:
        return self.instruction.accounts


@dataclass(frozen=True)
class TokenAmount:
    amount: int
    decimals: int

    @property
    def ui_amount(self) -> float:
        return convert_to_ui_amount(self.amount, self.decimals)


@dataclass(frozen=True)
class BalanceChange:
    pre: int
    post: int
    decimals: int

    @property
    def change(self) -> int:
        return self.post - self.pre

    @property
    def ui_change(self) -> float:
        return convert_to_ui_amount(self.change, self.decimals)


@dataclass(frozen=True)
class TokenBalance:
    """Row of pre/postTokenBalances."""
    account: str
    mint: str
    owner: str | None
    amount: int
    decimals: int
    program_id: str | None = None


@dataclass(frozen=True)
class TransferRecord:
    """Balance movement attributed to one instruction."""
    kind: TransferKind
    program_id: str
    mint: str
    source: str
    destination: str
    amount: TokenAmount
    idx: str
    authority: str | None = None
    source_owner: str | None = None
    destination_owner: str | None = None
    is_fee: bool = False

    @property
    def raw_amount(self) -> int:
        return self.amount.amount

    @property
    def decimals(self) -> int:
        return self.amount.decimals

    @property
    def ui_amount(self) -> float:
        return self.amount.ui_amount

    @property
    def is_native(self) -> bool:
        return self.kind is TransferKind.TRANSFER and self.program_id == SYSTEM_PROGRAM_ID

    def to_dict(self) -> dict[str, Any]:
        data = _jsonable(self)
        data["ui_amount"] = self.ui_amount
        return data


# ============================================================================
# CANONICAL OUTPUT
# ============================================================================

@dataclass
class TokenInfo:
    """One leg of a trade. ``decimals``/``ui_amount`` are None until resolved."""
    mint: str
    amount_raw: int
    decimals: int | None = None
    ui_amount: float | None = None
    authority: str | None = None
    source: str | None = None
    destination: str | None = None
    destination_owner: str | None = None
    balance_change: int | None = None

    @classmethod
    def from_raw(cls, mint: str, amount_raw: int, decimals: int, **extra) -> TokenInfo:
        return cls(
            mint=mint,
            amount_raw=amount_raw,
            decimals=decimals,
            ui_amount=convert_to_ui_amount(amount_raw, decimals),
            **extra,
        )

    @classmethod
    def unresolved(cls, mint: str, amount_raw: int) -> TokenInfo:
        """Mint and raw amount only; decimals resolved later by mint lookup."""
        return cls(mint=mint, amount_raw=amount_raw)

    @property
    def is_resolved(self) -> bool:
        return self.decimals is not None and self.ui_amount is not None

    def resolve(self, decimals: int) -> TokenInfo:
        return TokenInfo(
            mint=self.mint,
            amount_raw=self.amount_raw,
            decimals=decimals,
            ui_amount=convert_to_ui_amount(self.amount_raw, decimals),
            authority=self.authority,
            source=self.source,
            destination=self.destination,
            destination_owner=self.destination_owner,
            balance_change=self.balance_change,
        )


@dataclass(frozen=True)
class FeeInfo:
    mint: str
    amount_raw: int
    decimals: int
    ui_amount: float
    type: str | None = None
    recipient: str | None = None
    dex: str | None = None


@dataclass(frozen=True)
class DexInfo:
    """Router/AMM identity surfaced for a transaction."""
    program_id: str | None = None
    amm: str | None = None
    route: str | None = None


@dataclass
class MemeEvent:
    """Canonical launchpad / bonding-curve event."""
    type: EventType
    protocol: str
    user: str = ""
    base_mint: str = ""
    quote_mint: str = ""
    input_token: TokenInfo | None = None
    output_token: TokenInfo | None = None

    # CREATE
    name: str | None = None
    symbol: str | None = None
    uri: str | None = None
    decimals: int | None = None
    total_supply: int | None = None
    creator: str | None = None
    platform_config: str | None = None

    # raw fee components, quote leg
    fee: int | None = None
    protocol_fee: int | None = None
    platform_fee: int | None = None
    share_fee: int | None = None
    creator_fee: int | None = None
    fee_recipient: str | None = None

    pool: str | None = None
    bonding_curve: str | None = None
    pool_dex: str | None = None
    pool_a_reserve: int | None = None
    pool_b_reserve: int | None = None

    # stamped by the dispatch loop
    signature: str = ""
    slot: int = 0
    timestamp: int = 0
    idx: str = ""

    def to_dict(self) -> dict[str, Any]:
        return _jsonable(self)


@dataclass
class TradeInfo:
    """Canonical swap record."""
    type: TradeType
    input_token: TokenInfo
    output_token: TokenInfo
    user: str
    program_id: str
    amm: str
    route: str = ""
    pools: list[str] = field(default_factory=list)
    fee: FeeInfo | None = None
    fees: list[FeeInfo] = field(default_factory=list)
    slot: int = 0
    timestamp: int = 0
    signature: str = ""
    idx: str = ""

    def to_dict(self) -> dict[str, Any]:
        return _jsonable(self)


@dataclass
class ParseResult:
    """Everything decoded from one transaction."""
    signature: str
    slot: int = 0
    timestamp: int = 0
    state: bool = True
    msg: str | None = None
    signer: list[str] = field(default_factory=list)
    fee: TokenAmount | None = None
    compute_units: int = 0
    trades: list[TradeInfo] = field(default_factory=list)
    meme_events: list[MemeEvent] = field(default_factory=list)
    transfers: list[TransferRecord] = field(default_factory=list)
    sol_balance_change: BalanceChange | None = None
    token_balance_change: dict[str, BalanceChange] = field(default_factory=dict)

    def ordered_records(self) -> list[MemeEvent | TradeInfo]:
        """Events and trades merged into one execution-ordered sequence."""
        from meme_decoder.core.ordering import sort_by_idx

        return sort_by_idx([*self.meme_events, *self.trades])

    def to_dict(self) -> dict[str, Any]:
        return _jsonable(self)

"""
Shared decoder capability.

Every protocol family is one ``ProtocolDecoder`` subclass. Launchpad-style
programs subclass ``EventParser`` and declare a static ``ROUTES`` table of
``EventRoute`` entries; a route's handler returns a MemeEvent (ok) or None
(skip) and raises DecodeError for structurally malformed input. The dispatch
loop turns each attempt into an explicit ``DecodeOutcome``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from functools import cached_property
from typing import ClassVar

from meme_decoder.core.instruction_classifier import InstructionClassifier
from meme_decoder.core.pubkeys import get_program_name
from meme_decoder.core.trade_synthesizer import build_trade_from_event, process_swap_data
from meme_decoder.core.transaction_view import TransactionView
from meme_decoder.core.transfer_correlator import TransferCorrelator
from meme_decoder.errors import BinaryReaderError, DecodeError, DecoderError
from meme_decoder.interfaces.models import (
    ClassifiedInstruction,
    DexInfo,
    EventType,
    FeeInfo,
    MemeEvent,
    Protocol,
    TradeInfo,
    TransferRecord,
)
from meme_decoder.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class InstructionContext:
    """What a decode routine may look at besides the payload."""
    instruction: ClassifiedInstruction
    signer: str
    transfers: tuple[TransferRecord, ...]

    @property
    def program_id(self) -> str:
        return self.instruction.program_id

    @property
    def outer_index(self) -> int:
        return self.instruction.outer_index

    @property
    def inner_index(self) -> int | None:
        return self.instruction.inner_index

    @property
    def accounts(self) -> tuple[str, ...]:
        return self.instruction.accounts

    def account(self, index: int) -> str:
        """Account at ``index``; a missing one is a structural failure."""
        accounts = self.instruction.accounts
        if index >= len(accounts):
            raise DecodeError(
                f"account #{index} missing, instruction has {len(accounts)} accounts",
                idx=self.instruction.idx,
            )
        return accounts[index]


RouteHandler = Callable[["EventParser", bytes, InstructionContext], "MemeEvent | None"]


@dataclass(frozen=True)
class EventRoute:
    """Discriminator patterns -> decode routine.

    ``slice`` bytes are stripped before the payload is handed to the handler;
    0 passes the full instruction data.
    """
    event_type: EventType
    discriminators: tuple[bytes, ...]
    slice: int
    handler: RouteHandler

    def matches(self, data: bytes) -> bool:
        return any(data[:len(d)] == d for d in self.discriminators)


class DecodeStatus(Enum):
    OK = "ok"
    SKIP = "skip"
    ERR = "err"


@dataclass(frozen=True)
class DecodeOutcome:
    status: DecodeStatus
    event: MemeEvent | None = None
    error: DecodeError | None = None

    @classmethod
    def ok(cls, event: MemeEvent) -> DecodeOutcome:
        return cls(DecodeStatus.OK, event=event)

    @classmethod
    def skip(cls) -> DecodeOutcome:
        return cls(DecodeStatus.SKIP)

    @classmethod
    def err(cls, error: DecodeError) -> DecodeOutcome:
        return cls(DecodeStatus.ERR, error=error)


class ProtocolDecoder(ABC):
    """Decoder for one protocol family over one transaction."""

    protocol: ClassVar[Protocol]
    # programs whose presence in a transaction selects this decoder
    program_ids: ClassVar[tuple[str, ...]]
    # programs whose instructions the decoder classifies (defaults to program_ids)
    classified_program_ids: ClassVar[tuple[str, ...] | None] = None

    def __init__(
        self,
        view: TransactionView,
        classifier: InstructionClassifier,
        correlator: TransferCorrelator,
        dex_info: DexInfo | None = None,
    ):
        self.view = view
        self.classifier = classifier
        self.correlator = correlator
        self.dex_info = dex_info or DexInfo()

    @cached_property
    def instructions(self) -> list[ClassifiedInstruction]:
        return self.classifier.get_multi_instructions(
            self.classified_program_ids or self.program_ids
        )

    def context(self, instruction: ClassifiedInstruction) -> InstructionContext:
        return InstructionContext(
            instruction=instruction,
            signer=self.view.signer,
            transfers=tuple(self.correlator.transfers_for(instruction)),
        )

    def parse_events(self) -> list[MemeEvent]:
        return []

    @abstractmethod
    def parse_trades(self, events: list[MemeEvent]) -> list[TradeInfo]:
        """Trades of this transaction; ``events`` are this decoder's own events."""


class EventParser(ProtocolDecoder):
    """Decoder driven by a static discriminator route table."""

    ROUTES: ClassVar[tuple[EventRoute, ...]] = ()
    default_amm: ClassVar[str] = ""

    def match_route(self, data: bytes) -> EventRoute | None:
        for route in self.ROUTES:
            if route.matches(data):
                return route
        return None

    def try_decode(self, instruction: ClassifiedInstruction) -> DecodeOutcome:
        route = self.match_route(instruction.data)
        if route is None:
            return DecodeOutcome.skip()

        protocol = self.protocol.value
        try:
            event = route.handler(self, instruction.data[route.slice:], self.context(instruction))
        except DecodeError as exc:
            return DecodeOutcome.err(exc.with_context(protocol, instruction.idx))
        except (DecoderError, IndexError, ValueError) as exc:
            kind = "out of bounds" if isinstance(exc, BinaryReaderError) else type(exc).__name__
            error = DecodeError(f"{route.event_type.value} decode failed ({kind}): {exc}", protocol, instruction.idx)
            error.__cause__ = exc
            return DecodeOutcome.err(error)

        if event is None:
            return DecodeOutcome.skip()
        return DecodeOutcome.ok(event)

    def parse_events(self) -> list[MemeEvent]:
        """Decode every classified instruction; the first failure aborts the transaction."""
        events: list[MemeEvent] = []
        for instruction in self.instructions:
            outcome = self.try_decode(instruction)
            if outcome.status is DecodeStatus.ERR:
                raise outcome.error
            if outcome.status is DecodeStatus.SKIP:
                continue
            event = outcome.event
            event.protocol = event.protocol or self.protocol.value
            event.signature = self.view.signature
            event.slot = self.view.slot
            event.timestamp = self.view.block_time
            event.idx = instruction.idx
            events.append(event)
        if events:
            logger.debug(f"[{self.protocol.name}] decoded {len(events)} events")
        return events

    def parse_trades(self, events: list[MemeEvent]) -> list[TradeInfo]:
        program_id = self.program_ids[0]
        trades = []
        for event in events:
            try:
                trade = build_trade_from_event(self.view, event, self.dex_info, program_id, self.default_amm)
            except DecodeError as exc:
                raise exc.with_context(self.protocol.value, event.idx)
            except DecoderError as exc:
                error = DecodeError(f"trade synthesis failed: {exc}", self.protocol.value, event.idx)
                raise error from exc
            if trade is not None:
                trades.append(trade)
        return trades


class PoolSwapParser(ProtocolDecoder):
    """Swaps of liquidity-pool programs, inferred from correlated transfers.

    Any classified instruction that is not a known liquidity instruction and
    caused at least two transfers is treated as a swap.
    """

    # program id -> liquidity add/remove/create discriminators
    LIQUIDITY_DISCRIMINATORS: ClassVar[dict[str, tuple[bytes, ...]]] = {}
    # program id -> index of the pool account
    POOL_ACCOUNT_INDEX: ClassVar[dict[str, int]] = {}
    MIN_SWAP_TRANSFERS: ClassVar[int] = 2

    def is_liquidity_instruction(self, instruction: ClassifiedInstruction) -> bool:
        data = instruction.data
        return any(
            data[:len(d)] == d
            for d in self.LIQUIDITY_DISCRIMINATORS.get(instruction.program_id, ())
        )

    def select_transfers(self, instruction: ClassifiedInstruction, transfers: list[TransferRecord]) -> list[TransferRecord]:
        return transfers

    def pool_address(self, instruction: ClassifiedInstruction) -> str | None:
        index = self.POOL_ACCOUNT_INDEX.get(instruction.program_id)
        if index is None or index >= len(instruction.accounts):
            return None
        return instruction.accounts[index]

    def extra_fee(self, instruction: ClassifiedInstruction, transfers: list[TransferRecord]) -> FeeInfo | None:
        return None

    def parse_trades(self, events: list[MemeEvent]) -> list[TradeInfo]:
        trades = []
        for instruction in self.instructions:
            if self.is_liquidity_instruction(instruction):
                continue
            transfers = self.correlator.transfers_for(instruction)
            if len(transfers) < self.MIN_SWAP_TRANSFERS:
                continue

            dex_info = DexInfo(
                program_id=self.dex_info.program_id or instruction.program_id,
                amm=self.dex_info.amm or get_program_name(instruction.program_id),
                route=self.dex_info.route,
            )
            try:
                trade = process_swap_data(self.view, self.select_transfers(instruction, transfers), dex_info)
            except DecodeError as exc:
                raise exc.with_context(self.protocol.value, instruction.idx)
            if trade is None:
                continue

            pool = self.pool_address(instruction)
            if pool:
                trade.pools = [pool]
            fee = self.extra_fee(instruction, transfers)
            if fee is not None:
                trade.fee = fee
                trade.fees = [fee]
            trade.idx = instruction.idx
            trade.signature = self.view.signature
            trade.slot = self.view.slot
            trade.timestamp = self.view.block_time
            trades.append(trade)
        if trades:
            logger.debug(f"[{self.protocol.name}] inferred {len(trades)} swaps from transfers")
        return trades

"""
DexParser - decodes confirmed transactions into ordered meme events and trades.

One call decodes one transaction: the instruction tree is classified, the
transfers are correlated once, every protocol decoder present in the
transaction runs against that shared read-only state, and the records are
sorted into execution order. A decode failure is caught once per transaction:
it is logged with the signature, protocol and instruction position, and the
transaction's records are dropped.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Mapping
from typing import Any

from meme_decoder.config import DecoderSettings, ParseConfig
from meme_decoder.core.instruction_classifier import InstructionClassifier
from meme_decoder.core.mint_decimals import MintDecimalsCache, MintDecimalsSnapshot
from meme_decoder.core.ordering import get_final_swap, sort_by_idx
from meme_decoder.core.pubkeys import QUOTE_MINTS, get_program_name
from meme_decoder.core.trade_synthesizer import process_swap_data
from meme_decoder.core.transaction_view import TransactionView
from meme_decoder.core.transfer_correlator import TransferCorrelator
from meme_decoder.errors import DecodeError, DecoderError
from meme_decoder.interfaces.decoder import ProtocolDecoder
from meme_decoder.interfaces.models import (
    SUPPLY_TRANSFER_KINDS,
    DexInfo,
    MemeEvent,
    ParseResult,
    TradeInfo,
)
from meme_decoder.platforms import get_decoder
from meme_decoder.utils.decode_context import DecodeContext
from meme_decoder.utils.logger import (
    get_logger,
    log_decode_failure,
    setup_console_logging,
    setup_file_logging,
    setup_json_logging,
)

logger = get_logger(__name__)

MintDecimalsSource = MintDecimalsSnapshot | MintDecimalsCache | Mapping[str, int] | None

# raised while normalising a payload that is not a well-formed getTransaction result
MALFORMED_PAYLOAD_ERRORS = (IndexError, KeyError, TypeError, ValueError)


def _signature_of(tx: Mapping[str, Any]) -> str:
    signatures = (tx.get("transaction") or {}).get("signatures") or []
    return signatures[0] if signatures else ""


def _snapshot_of(mint_decimals: MintDecimalsSource) -> MintDecimalsSnapshot | Mapping[str, int] | None:
    """Freeze the caller's decimals source for the duration of one call."""
    if isinstance(mint_decimals, MintDecimalsCache):
        return mint_decimals.snapshot()
    return mint_decimals


class DexParser:
    """Transaction-level entry point."""

    def __init__(self, config: ParseConfig | None = None, mint_cache: MintDecimalsCache | None = None):
        self.config = config or ParseConfig()
        # when set, decimals observed in decoded transactions are fed back
        self.mint_cache = mint_cache

    @classmethod
    def from_settings(cls, settings: DecoderSettings, mint_cache: MintDecimalsCache | None = None) -> DexParser:
        """Build a parser and install the configured log handlers."""
        level = settings.log_level_value
        setup_console_logging(level)
        if settings.log_file:
            setup_file_logging(settings.log_file, level)
        if settings.json_log_file:
            setup_json_logging(settings.json_log_file)
        return cls(settings.parse, mint_cache)

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------

    def parse_all(self, tx: Mapping[str, Any], mint_decimals: MintDecimalsSource = None) -> ParseResult:
        """Decode events and trades of one getTransaction result."""
        if mint_decimals is None and self.mint_cache is not None:
            mint_decimals = self.mint_cache
        return self._parse(tx, _snapshot_of(mint_decimals), self.config.throw_error)

    def parse_trades(self, tx: Mapping[str, Any], mint_decimals: MintDecimalsSource = None) -> list[TradeInfo]:
        return self.parse_all(tx, mint_decimals).trades

    def parse_events(self, tx: Mapping[str, Any], mint_decimals: MintDecimalsSource = None) -> list[MemeEvent]:
        return self.parse_all(tx, mint_decimals).meme_events

    def parse_batch(
        self,
        txs: Iterable[Mapping[str, Any]],
        mint_decimals: MintDecimalsSource = None,
    ) -> list[ParseResult]:
        """Decode many transactions against one decimals snapshot.

        Transactions that failed on chain are skipped; a transaction that
        fails to decode is logged and left out without affecting the rest.
        """
        if mint_decimals is None and self.mint_cache is not None:
            mint_decimals = self.mint_cache
        snapshot = _snapshot_of(mint_decimals)

        results: list[ParseResult] = []
        skipped = dropped = 0
        for tx in txs:
            if (tx.get("meta") or {}).get("err") is not None:
                skipped += 1
                continue
            result = self._parse(tx, snapshot, throw_error=False)
            if not result.state:
                dropped += 1
                continue
            results.append(result)

        logger.info(
            f"[DEX_PARSER] batch decoded={len(results)} skipped_failed_onchain={skipped} "
            f"dropped={dropped}"
        )
        return results

    async def parse_batch_async(
        self,
        txs: Iterable[Mapping[str, Any]],
        mint_decimals: MintDecimalsSource = None,
    ) -> list[ParseResult]:
        """``parse_batch`` in a worker thread, for use inside an event loop."""
        return await asyncio.to_thread(self.parse_batch, list(txs), mint_decimals)

    # ------------------------------------------------------------------
    # per-transaction decode
    # ------------------------------------------------------------------

    def _parse(
        self,
        tx: Mapping[str, Any],
        mint_decimals: MintDecimalsSnapshot | Mapping[str, int] | None,
        throw_error: bool,
    ) -> ParseResult:
        result = ParseResult(signature=_signature_of(tx))

        with DecodeContext.start(result.signature, tx.get("slot") or 0) as ctx:
            try:
                view = TransactionView(tx, mint_decimals)
                result.slot = view.slot
                result.timestamp = view.block_time
                result.signer = view.signers
                result.fee = view.fee
                result.compute_units = view.compute_units
                if view.is_failed:
                    result.state = False
                    result.msg = "transaction failed on chain"
                    ctx.mark_finished(outcome="filtered")
                    return result
                self._decode_into(view, result)
                if self.mint_cache is not None:
                    self.mint_cache.observe_token_balances(view.post_token_balances)
            except (DecoderError, *MALFORMED_PAYLOAD_ERRORS) as exc:
                if isinstance(exc, DecoderError):
                    error = exc
                else:
                    error = DecodeError(f"malformed transaction: {exc!r}")
                    error.__cause__ = exc
                protocol = getattr(error, "protocol", None)
                idx = getattr(error, "idx", None)
                log_decode_failure(result.signature, protocol, idx, error)
                ctx.mark_finished(success=False, fail_reason=str(error))
                result.state = False
                result.msg = str(error)
                result.trades = []
                result.meme_events = []
                result.transfers = []
                if throw_error:
                    if error is exc:
                        raise
                    raise error from exc
                return result

            ctx.mark_finished(outcome="ok" if result.trades or result.meme_events else "filtered")

        logger.debug(
            f"[DEX_PARSER] trades={len(result.trades)} events={len(result.meme_events)} "
            f"transfers={len(result.transfers)} elapsed_ms={ctx.elapsed_ms:.2f}"
        )
        return result

    def _decode_into(self, view: TransactionView, result: ParseResult) -> None:
        config = self.config
        classifier = InstructionClassifier(view)
        correlator = TransferCorrelator(view, extra_kinds=SUPPLY_TRANSFER_KINDS)
        dex_info = classifier.get_dex_info()
        program_ids = classifier.get_all_program_ids()

        if config.program_ids and not any(pid in config.program_ids for pid in program_ids):
            result.state = False
            result.msg = "no requested program in transaction"
            return

        result.sol_balance_change = view.get_sol_balance_change(view.signer)
        result.token_balance_change = view.get_account_token_balance_changes().get(view.signer, {})

        trades: list[TradeInfo] = []
        events: list[MemeEvent] = []
        seen: set[type[ProtocolDecoder]] = set()
        for program_id in program_ids:
            if not config.accepts(program_id):
                continue
            decoder_cls = get_decoder(program_id)
            if decoder_cls is None:
                if config.try_unknown_dex:
                    trade = self._unknown_dex_trade(view, correlator, dex_info, program_id)
                    if trade is not None:
                        trades.append(trade)
                continue
            if decoder_cls in seen:
                continue
            seen.add(decoder_cls)

            decoder = decoder_cls(view, classifier, correlator, dex_info)
            decoder_events = decoder.parse_events()
            events.extend(decoder_events)
            trades.extend(decoder.parse_trades(decoder_events))

        # one trade per instruction position
        trades = list({f"{t.idx}-{t.signature}": t for t in trades}.values())
        if config.aggregate_trades and len(trades) > 1:
            final = get_final_swap(trades, dex_info.amm)
            if final is not None:
                trades = [final]

        result.trades = sort_by_idx(trades)
        result.meme_events = sort_by_idx(events)
        if not result.trades:
            result.transfers = sort_by_idx(correlator.all_transfers())

    @staticmethod
    def _unknown_dex_trade(
        view: TransactionView,
        correlator: TransferCorrelator,
        dex_info: DexInfo,
        program_id: str,
    ) -> TradeInfo | None:
        """Generic swap for a program without a decoder, from its quote-token transfers."""
        transfers = correlator.transfers_for_program(program_id)
        if len(transfers) < 2 or not any(t.mint in QUOTE_MINTS for t in transfers):
            return None
        info = DexInfo(
            program_id=program_id,
            amm=dex_info.amm or get_program_name(program_id),
            route=dex_info.route,
        )
        try:
            trade = process_swap_data(view, transfers, info)
        except DecodeError as exc:
            raise exc.with_context(get_program_name(program_id), transfers[0].idx)
        if trade is not None:
            trade.signature = view.signature
            trade.slot = view.slot
            trade.timestamp = view.block_time
            logger.debug(f"[DEX_PARSER] unknown program {program_id} inferred as swap at {trade.idx}")
        return trade

"""
Execution-order helpers for decoded records.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TypeVar

from meme_decoder.core.trade_synthesizer import get_trade_type
from meme_decoder.interfaces.models import ClassifiedInstruction, TradeInfo

T = TypeVar("T")


def parse_idx(idx: str) -> tuple[int, int]:
    """ "3-1" -> (3, 1); "3" -> (3, 0)."""
    outer, _, inner = str(idx).partition("-")
    return int(outer or 0), int(inner or 0)


def sort_by_idx(records: Sequence[T]) -> list[T]:
    """Stable ascending sort by ``idx``; records with equal keys keep their order."""
    return sorted((r for r in records if r is not None), key=lambda r: parse_idx(r.idx))


def get_prev_instruction_by_index(
    instructions: Sequence[ClassifiedInstruction],
    outer_index: int,
    inner_index: int | None,
) -> ClassifiedInstruction | None:
    """Instruction immediately before (outer_index, inner_index) in ``instructions``."""
    for i, ci in enumerate(instructions):
        if ci.outer_index == outer_index and ci.inner_index == inner_index:
            return instructions[i - 1] if i > 0 else None
    return None


def get_final_swap(trades: Sequence[TradeInfo], dex_amm: str | None = None) -> TradeInfo | None:
    """Collapse a multi-hop route into one swap: first input, last output."""
    if not trades:
        return None
    if len(trades) == 1:
        return trades[0]

    ordered = sort_by_idx(trades)
    first, last = ordered[0], ordered[-1]
    if first.input_token.mint == last.output_token.mint:
        # circular route, nothing meaningful to aggregate
        return None

    pools = [pool for trade in ordered for pool in trade.pools]
    return TradeInfo(
        type=get_trade_type(first.input_token.mint, last.output_token.mint),
        input_token=first.input_token,
        output_token=last.output_token,
        user=first.user,
        program_id=first.program_id,
        amm=dex_amm or first.amm,
        route=first.route,
        pools=pools,
        fee=first.fee,
        fees=[fee for trade in ordered for fee in trade.fees],
        slot=first.slot,
        timestamp=first.timestamp,
        signature=first.signature,
        idx=first.idx,
    )


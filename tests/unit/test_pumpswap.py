"""Unit tests for the PumpSwap decoder"""
import struct

import pytest

from meme_decoder import DexParser, MintDecimalsCache
from meme_decoder.core.discriminators import PumpswapDiscriminators
from meme_decoder.core.pubkeys import SOL_MINT, DexPrograms
from meme_decoder.interfaces.models import EventType, TradeType

PUMP_SWAP = DexPrograms.PUMP_SWAP.id


@pytest.fixture
def swap_event(pubkey_bytes, new_address):
    """Buy/Sell event data; ``creator`` appends the coin-creator block."""
    def build(discriminator, pool, user, base_amount, quote_amount, protocol_fee, fee_recipient, creator=None):
        data = (
            discriminator
            + struct.pack("<q", 1_700_000_000)
            + struct.pack(
                "<13Q",
                base_amount,      # base amount
                quote_amount,     # quote limit
                0, 0,             # user reserves
                5_000_000_000_000, 90_000_000_000,  # pool reserves
                quote_amount,     # quote amount
                20, 1_000,        # lp fee
                5, protocol_fee,  # protocol fee
                quote_amount,     # quote with lp fee
                quote_amount,     # user quote amount
            )
            + pubkey_bytes(pool)
            + pubkey_bytes(user)
            + pubkey_bytes(new_address())
            + pubkey_bytes(new_address())
            + pubkey_bytes(fee_recipient)
            + pubkey_bytes(new_address())
        )
        if creator is not None:
            data += pubkey_bytes(creator) + struct.pack("<QQ", 5, 2_500)
        return data
    return build


def _swap_instruction(tx, new_address, pool, base_mint):
    """pool, user, global_config, base_mint, quote_mint, ..."""
    return tx.add_instruction(PUMP_SWAP, [pool, tx.signer, new_address(), base_mint, SOL_MINT], b"\x00" * 8)


class TestSwapEvents:
    def test_buy_with_creator_fee(self, tx, new_address, swap_event):
        pool, base_mint, fee_recipient, creator = new_address(), new_address(), new_address(), new_address()
        outer = _swap_instruction(tx, new_address, pool, base_mint)
        tx.add_inner(outer, PUMP_SWAP, [], swap_event(
            PumpswapDiscriminators.BUY_EVENT, pool, tx.signer, 3_000_000, 100_000_000, 5_000, fee_recipient, creator
        ))

        result = DexParser().parse_all(tx.build(), {base_mint: 6})

        assert result.state
        (event,) = result.meme_events
        assert event.type is EventType.BUY
        assert event.base_mint == base_mint
        assert event.quote_mint == SOL_MINT
        assert event.pool == pool
        assert event.creator == creator

        (trade,) = result.trades
        assert trade.type is TradeType.BUY
        assert trade.input_token.mint == SOL_MINT
        assert trade.input_token.ui_amount == 0.1
        assert trade.output_token.mint == base_mint
        assert trade.output_token.ui_amount == 3.0
        assert trade.fee.amount_raw == 7_500
        assert trade.fees[0].recipient == fee_recipient
        assert trade.amm == "Pumpswap"

    def test_sell_decimals_from_balances(self, tx, new_address, swap_event):
        pool, base_mint = new_address(), new_address()
        tx.token_balance(new_address(), base_mint, tx.signer, 2_000_000_000, 0, 9)
        outer = _swap_instruction(tx, new_address, pool, base_mint)
        tx.add_inner(outer, PUMP_SWAP, [], swap_event(
            PumpswapDiscriminators.SELL_EVENT, pool, tx.signer, 2_000_000_000, 400_000_000, 0, new_address()
        ))

        (trade,) = DexParser().parse_trades(tx.build())

        assert trade.type is TradeType.SELL
        assert trade.input_token.decimals == 9
        assert trade.input_token.ui_amount == 2.0
        assert trade.output_token.ui_amount == 0.4
        assert trade.fee is None

    def test_decimals_from_shared_cache(self, tx, new_address, swap_event):
        pool, base_mint = new_address(), new_address()
        cache = MintDecimalsCache()
        cache.update({base_mint: 6})
        outer = _swap_instruction(tx, new_address, pool, base_mint)
        tx.add_inner(outer, PUMP_SWAP, [], swap_event(
            PumpswapDiscriminators.BUY_EVENT, pool, tx.signer, 1_000_000, 1_000, 0, new_address()
        ))

        (trade,) = DexParser(mint_cache=cache).parse_trades(tx.build())
        assert trade.output_token.ui_amount == 1.0

    def test_unknown_decimals_fails_transaction(self, tx, new_address, swap_event):
        pool, base_mint = new_address(), new_address()
        outer = _swap_instruction(tx, new_address, pool, base_mint)
        tx.add_inner(outer, PUMP_SWAP, [], swap_event(
            PumpswapDiscriminators.BUY_EVENT, pool, tx.signer, 1, 1, 0, new_address()
        ))

        result = DexParser().parse_all(tx.build())

        assert not result.state
        assert base_mint in result.msg
        assert result.trades == []

    def test_event_without_swap_instruction(self, tx, new_address, swap_event):
        tx.add_instruction(PUMP_SWAP, [], swap_event(
            PumpswapDiscriminators.BUY_EVENT, new_address(), tx.signer, 1, 1, 0, new_address()
        ))
        result = DexParser().parse_all(tx.build())
        assert not result.state
        assert "swap instruction for event not found" in result.msg

"""Unit tests for the Pump.fun decoder"""
import struct

import pytest

from meme_decoder import DexParser
from meme_decoder.core.discriminators import PumpfunDiscriminators
from meme_decoder.core.pubkeys import SOL_MINT, DexPrograms
from meme_decoder.interfaces.models import EventType, TradeType

PUMP = DexPrograms.PUMP_FUN.id


@pytest.fixture
def trade_event(pubkey_bytes):
    """TradeEvent instruction data; ``extension`` appends the fee fields, ``bps`` is their rate format."""
    def build(mint, user, sol_amount, token_amount, is_buy, extension=None, bps="Q"):
        data = (
            PumpfunDiscriminators.TRADE_EVENT
            + pubkey_bytes(mint)
            + struct.pack("<QQ?", sol_amount, token_amount, is_buy)
            + pubkey_bytes(user)
            + struct.pack("<qQQ", 1_700_000_000, 30_000_000_000, 1_073_000_000_000_000)
        )
        if extension is not None:
            fee_recipient, protocol_fee, creator, creator_fee = extension
            data += (
                struct.pack("<QQ", 1_000_000_000, 793_000_000_000_000)
                + pubkey_bytes(fee_recipient)
                + struct.pack(f"<{bps}Q", 95, protocol_fee)
                + pubkey_bytes(creator)
                + struct.pack(f"<{bps}Q", 5, creator_fee)
            )
        return data
    return build


def _pump_trade(tx, new_address, mint, curve):
    """Outer buy/sell instruction: global, fee_recipient, mint, bonding_curve, ..."""
    return tx.add_instruction(PUMP, [new_address(), new_address(), mint, curve, new_address(), tx.signer], b"\x00" * 8)


class TestTrade:
    def test_buy_with_fees(self, tx, new_address, trade_event):
        mint, curve, fee_recipient, creator = new_address(), new_address(), new_address(), new_address()
        outer = _pump_trade(tx, new_address, mint, curve)
        tx.add_sol_transfer(outer, tx.signer, curve, 2_000_000_000)
        tx.add_token_transfer(outer, new_address(), new_address(), curve, mint, 70_000_000_000, 6)
        tx.add_inner(outer, PUMP, [], trade_event(
            mint, tx.signer, 2_000_000_000, 70_000_000_000, True,
            extension=(fee_recipient, 19_000_000, creator, 1_000_000),
        ))

        result = DexParser().parse_all(tx.build())

        assert result.state
        (event,) = result.meme_events
        assert event.type is EventType.BUY
        assert event.idx == "0-2"
        assert event.bonding_curve == curve
        assert event.creator == creator
        assert event.pool_b_reserve == 30_000_000_000

        (trade,) = result.trades
        assert trade.type is TradeType.BUY
        assert trade.input_token.mint == SOL_MINT
        assert trade.input_token.ui_amount == 2.0
        assert trade.output_token.ui_amount == 70_000.0
        assert trade.pools == [curve]
        assert trade.fee.amount_raw == 20_000_000
        assert trade.fee.mint == SOL_MINT
        assert {f.type: f.amount_raw for f in trade.fees} == {"protocol": 19_000_000, "coinCreator": 1_000_000}
        assert trade.fees[0].recipient == fee_recipient

    def test_buy_with_u16_fee_rates(self, tx, new_address, trade_event):
        mint, curve, fee_recipient, creator = new_address(), new_address(), new_address(), new_address()
        outer = _pump_trade(tx, new_address, mint, curve)
        tx.add_inner(outer, PUMP, [], trade_event(
            mint, tx.signer, 2_000_000_000, 70_000_000_000, True,
            extension=(fee_recipient, 19_000_000, creator, 1_000_000), bps="H",
        ))

        result = DexParser().parse_all(tx.build())

        assert result.state
        (event,) = result.meme_events
        assert event.creator == creator
        assert event.fee_recipient == fee_recipient
        (trade,) = result.trades
        assert trade.fee.amount_raw == 20_000_000
        assert {f.type: f.amount_raw for f in trade.fees} == {"protocol": 19_000_000, "coinCreator": 1_000_000}

    def test_legacy_sell_without_extension(self, tx, new_address, trade_event):
        mint, curve = new_address(), new_address()
        outer = _pump_trade(tx, new_address, mint, curve)
        tx.add_inner(outer, PUMP, [], trade_event(mint, tx.signer, 500_000_000, 1_000_000, False))

        (trade,) = DexParser().parse_trades(tx.build())

        assert trade.type is TradeType.SELL
        assert trade.input_token.mint == mint
        assert trade.input_token.ui_amount == 1.0
        assert trade.output_token.ui_amount == 0.5
        assert trade.fee is None
        assert trade.fees == []

    def test_truncated_event_fails_transaction(self, tx, new_address, trade_event):
        mint, curve = new_address(), new_address()
        outer = _pump_trade(tx, new_address, mint, curve)
        tx.add_inner(outer, PUMP, [], trade_event(mint, tx.signer, 1, 1, True)[:60])

        result = DexParser().parse_all(tx.build())

        assert not result.state
        assert result.meme_events == []
        assert "Pumpfun" in result.msg


class TestLifecycle:
    def test_create(self, tx, new_address, pubkey_bytes, borsh_str):
        mint, curve, creator = new_address(), new_address(), new_address()
        data = (
            PumpfunDiscriminators.CREATE_EVENT
            + borsh_str("Pump Coin")
            + borsh_str("PUMP")
            + borsh_str("https://example.com/pump.json")
            + pubkey_bytes(mint)
            + pubkey_bytes(curve)
            + pubkey_bytes(tx.signer)
            + pubkey_bytes(creator)
            + struct.pack("<q", 1_700_000_000)
            + struct.pack("<QQQQ", 1_073_000_000_000_000, 30_000_000_000, 793_100_000_000_000, 1_000_000_000_000_000)
        )
        outer = tx.add_instruction(PUMP, [mint], b"\x01" * 8)
        tx.add_inner(outer, PUMP, [], data)

        (event,) = DexParser().parse_events(tx.build())

        assert event.type is EventType.CREATE
        assert event.name == "Pump Coin"
        assert event.symbol == "PUMP"
        assert event.uri == "https://example.com/pump.json"
        assert event.base_mint == mint
        assert event.bonding_curve == curve
        assert event.user == tx.signer
        assert event.creator == creator
        assert event.decimals == 6
        assert event.pool_a_reserve == 1_073_000_000_000_000
        assert event.total_supply == 1_000_000_000_000_000

    def test_create_without_creator_block(self, tx, new_address, pubkey_bytes, borsh_str):
        mint, curve = new_address(), new_address()
        data = (
            PumpfunDiscriminators.CREATE_EVENT
            + borsh_str("Old")
            + borsh_str("OLD")
            + borsh_str("")
            + pubkey_bytes(mint)
            + pubkey_bytes(curve)
            + pubkey_bytes(tx.signer)
        )
        outer = tx.add_instruction(PUMP, [mint], b"\x01" * 8)
        tx.add_inner(outer, PUMP, [], data)

        (event,) = DexParser().parse_events(tx.build())
        assert event.creator == tx.signer
        assert event.pool_a_reserve is None

    def test_migrate(self, tx, new_address, pubkey_bytes):
        mint, curve, pool = new_address(), new_address(), new_address()
        data = (
            PumpfunDiscriminators.MIGRATE_EVENT
            + pubkey_bytes(tx.signer)
            + pubkey_bytes(mint)
            + struct.pack("<QQQ", 206_900_000_000_000, 84_990_359_038, 15_000_000)
            + pubkey_bytes(curve)
            + struct.pack("<q", 1_700_000_000)
            + pubkey_bytes(pool)
        )
        outer = tx.add_instruction(PUMP, [mint], b"\x02" * 8)
        tx.add_inner(outer, PUMP, [], data)

        (event,) = DexParser().parse_events(tx.build())

        assert event.type is EventType.MIGRATE
        assert event.pool == pool
        assert event.pool_dex == "Pumpswap"
        assert event.pool_b_reserve == 84_990_359_038
        assert event.fee == 15_000_000

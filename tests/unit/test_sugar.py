"""Unit tests for the Sugar decoder"""
import struct

import pytest

from meme_decoder import DexParser
from meme_decoder.core.discriminators import SugarDiscriminators
from meme_decoder.core.pubkeys import SOL_MINT, DexPrograms
from meme_decoder.interfaces.models import EventType, TradeType

SUGAR = DexPrograms.SUGAR.id


@pytest.fixture
def trade_accounts(tx, new_address):
    """1: mint, 2: bonding_curve, 6: user, 12: config"""
    accounts = [new_address() for _ in range(13)]
    accounts[6] = tx.signer
    return accounts


def test_buy_from_instruction_amounts(tx, trade_accounts):
    data = SugarDiscriminators.BUY_EXACT_IN + struct.pack("<HQQ", 0, 300_000_000, 12_000_000_000)
    tx.add_instruction(SUGAR, trade_accounts, data)

    result = DexParser().parse_all(tx.build())

    (event,) = result.meme_events
    assert event.type is EventType.BUY
    assert event.platform_config == trade_accounts[12]
    (trade,) = result.trades
    assert trade.input_token.mint == SOL_MINT
    assert trade.input_token.ui_amount == 0.3
    assert trade.output_token.mint == trade_accounts[1]
    assert trade.output_token.ui_amount == 12_000.0
    assert trade.pools == [trade_accounts[2]]


def test_sell_amounts_replaced_by_transfers(tx, new_address, trade_accounts):
    mint, curve = trade_accounts[1], trade_accounts[2]
    data = SugarDiscriminators.SELL_EXACT_IN + struct.pack("<HQQ", 0, 5_000_000, 1)
    outer = tx.add_instruction(SUGAR, trade_accounts, data)
    tx.add_token_transfer(outer, new_address(), new_address(), tx.signer, mint, 5_000_000, 6)
    tx.add_sol_transfer(outer, curve, tx.signer, 123_000_000)

    (trade,) = DexParser().parse_trades(tx.build())

    assert trade.type is TradeType.SELL
    assert trade.input_token.ui_amount == 5.0
    assert trade.output_token.amount_raw == 123_000_000


def test_sell_with_wrong_base_mint_fails(tx, new_address, trade_accounts):
    curve = trade_accounts[2]
    data = SugarDiscriminators.SELL_EXACT_IN + struct.pack("<HQQ", 0, 5_000_000, 1)
    outer = tx.add_instruction(SUGAR, trade_accounts, data)
    tx.add_token_transfer(outer, new_address(), new_address(), tx.signer, new_address(), 5_000_000, 6)
    tx.add_sol_transfer(outer, curve, tx.signer, 123_000_000)

    result = DexParser().parse_all(tx.build())
    assert not result.state
    assert "is not base mint" in result.msg


def test_create(tx, new_address, borsh_str):
    curve, mint = new_address(), new_address()
    accounts = [new_address(), new_address(), curve, mint, new_address(), new_address(), tx.signer]
    data = SugarDiscriminators.CREATE + borsh_str("Sugar") + borsh_str("SUGR") + borsh_str("https://example.com/s.json")
    tx.add_instruction(SUGAR, accounts, data)

    (event,) = DexParser().parse_events(tx.build())

    assert event.type is EventType.CREATE
    assert event.base_mint == mint
    assert event.creator == tx.signer
    assert event.total_supply == 1_000_000_000_000_000


def test_migrate(tx, new_address):
    accounts = [new_address() for _ in range(16)]
    tx.add_instruction(SUGAR, accounts, SugarDiscriminators.MIGRATE)

    (event,) = DexParser().parse_events(tx.build())

    assert event.type is EventType.MIGRATE
    assert event.base_mint == accounts[1]
    assert event.bonding_curve == accounts[3]
    assert event.user == accounts[12]
    assert event.pool == accounts[15]
    assert event.pool_dex == "RaydiumCPMM"

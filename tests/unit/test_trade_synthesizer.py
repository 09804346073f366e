"""Unit tests for trade synthesis"""
import pytest
from solders.pubkey import Pubkey
from spl.token.instructions import get_associated_token_address

from meme_decoder.core.pubkeys import SOL_MINT, USDC_MINT, SystemAddresses
from meme_decoder.core.trade_synthesizer import (
    aggregate_fees,
    build_trade_from_event,
    get_account_trade_type,
    get_associated_token_accounts,
    get_trade_type,
    process_swap_data,
)
from meme_decoder.core.transaction_view import TransactionView
from meme_decoder.errors import DecodeError, MintDecimalsError, MissingTransferError
from meme_decoder.interfaces.models import (
    DexInfo,
    EventType,
    MemeEvent,
    TokenAmount,
    TokenInfo,
    TradeType,
    TransferKind,
    TransferRecord,
)


def _ata(owner, mint, program=SystemAddresses.TOKEN_PROGRAM):
    return str(get_associated_token_address(Pubkey.from_string(owner), Pubkey.from_string(mint), program))


def _transfer(mint, amount, decimals, source="Src", destination="Dst", idx="0-1", authority=None, is_fee=False):
    return TransferRecord(
        kind=TransferKind.TRANSFER_CHECKED,
        program_id="Token",
        mint=mint,
        source=source,
        destination=destination,
        amount=TokenAmount(amount, decimals),
        idx=idx,
        authority=authority,
        is_fee=is_fee,
    )


class TestTradeType:
    def test_quote_direction(self):
        assert get_trade_type(SOL_MINT, "Token") is TradeType.BUY
        assert get_trade_type("Token", SOL_MINT) is TradeType.SELL
        assert get_trade_type(USDC_MINT, "Token") is TradeType.BUY
        assert get_trade_type("Token", USDC_MINT) is TradeType.SELL


class TestAccountTradeType:
    """Direction from the signer's associated token accounts"""

    def test_paying_from_base_account_is_sell(self, new_address):
        signer, base, other = new_address(), new_address(), new_address()
        assert get_account_trade_type(signer, base, _ata(signer, base), other) is TradeType.SELL

    def test_receiving_into_base_account_is_buy(self, new_address):
        signer, base, other = new_address(), new_address(), new_address()
        assert get_account_trade_type(signer, base, other, _ata(signer, base)) is TradeType.BUY

    def test_token_2022_accounts(self, new_address):
        signer, base, other = new_address(), new_address(), new_address()
        ata = _ata(signer, base, SystemAddresses.TOKEN_2022_PROGRAM)
        assert ata in get_associated_token_accounts(signer, base)
        assert get_account_trade_type(signer, base, ata, other) is TradeType.SELL

    def test_falls_back_to_balance_rows(self, tx, new_address):
        base, input_account, output_account = new_address(), new_address(), new_address()
        tx.token_balance(input_account, base, new_address(), 10, 0, 6)
        view = TransactionView(tx.build())
        assert get_account_trade_type(tx.signer, base, input_account, output_account, view) is TradeType.SELL
        assert get_account_trade_type(tx.signer, base, output_account, input_account, view) is TradeType.BUY

    def test_unknown_accounts(self, new_address):
        signer, base = new_address(), new_address()
        assert get_account_trade_type(signer, base, new_address(), new_address()) is TradeType.SWAP


class TestProcessSwapData:
    def test_two_legs(self, tx, new_address):
        view = TransactionView(tx.build())
        token = new_address()
        trade = process_swap_data(
            view,
            [_transfer(SOL_MINT, 2_000_000_000, 9, idx="1-2"), _transfer(token, 5_000_000, 6, idx="1-3")],
            DexInfo(program_id="Prog", amm="Amm"),
        )
        assert trade.type is TradeType.BUY
        assert trade.input_token.ui_amount == 2.0
        assert trade.output_token.ui_amount == 5.0
        assert trade.idx == "1-2"
        assert trade.user == tx.signer
        assert trade.amm == "Amm"

    def test_signer_paying_output_leg_swaps_direction(self, tx, new_address):
        view = TransactionView(tx.build())
        token = new_address()
        trade = process_swap_data(
            view,
            [_transfer(SOL_MINT, 1_000, 9), _transfer(token, 7, 6, authority=tx.signer)],
            DexInfo(),
        )
        assert trade.input_token.mint == token
        assert trade.type is TradeType.SELL

    def test_fee_transfer(self, tx, new_address):
        view = TransactionView(tx.build())
        token = new_address()
        trade = process_swap_data(
            view,
            [_transfer(SOL_MINT, 1_000, 9), _transfer(SOL_MINT, 10, 9, is_fee=True), _transfer(token, 7, 6)],
            DexInfo(amm="Amm"),
        )
        assert trade.input_token.amount_raw == 1_000
        assert trade.fee.amount_raw == 10
        assert trade.fees == [trade.fee]

    def test_single_mint_is_no_swap(self, tx):
        view = TransactionView(tx.build())
        assert process_swap_data(view, [_transfer(SOL_MINT, 1, 9), _transfer(SOL_MINT, 2, 9)], DexInfo()) is None

    def test_no_transfers(self, tx):
        with pytest.raises(MissingTransferError):
            process_swap_data(TransactionView(tx.build()), [], DexInfo())


class TestAggregateFees:
    def test_components_summed_zero_dropped(self):
        event = MemeEvent(
            type=EventType.BUY,
            protocol="RaydiumLaunchpad",
            protocol_fee=1_000,
            platform_fee=500,
            creator_fee=0,
            share_fee=250,
            platform_config="Config",
        )
        fee, fees = aggregate_fees(event, TokenInfo.from_raw(SOL_MINT, 1, 9), "RaydiumLaunchpad")
        assert fee.amount_raw == 1_750
        assert fee.mint == SOL_MINT
        assert [f.type for f in fees] == ["protocol", "platform", "share"]
        assert fees[1].recipient == "Config"

    def test_total_only(self):
        event = MemeEvent(type=EventType.SELL, protocol="Heaven", fee=30)
        fee, fees = aggregate_fees(event, TokenInfo.from_raw(SOL_MINT, 1, 9), "Heaven")
        assert fee.amount_raw == 30
        assert fees == []

    def test_no_fee(self):
        event = MemeEvent(type=EventType.SELL, protocol="Heaven")
        assert aggregate_fees(event, TokenInfo.from_raw(SOL_MINT, 1, 9), "Heaven") == (None, [])


class TestBuildTrade:
    def test_unresolved_tokens_use_snapshot(self, tx, new_address):
        token = new_address()
        view = TransactionView(tx.build(), {token: 6})
        event = MemeEvent(
            type=EventType.SELL,
            protocol="Pumpswap",
            user=tx.signer,
            input_token=TokenInfo.unresolved(token, 1_500_000),
            output_token=TokenInfo.unresolved(SOL_MINT, 500_000_000),
            pool="Pool",
            idx="2-1",
        )
        trade = build_trade_from_event(view, event, DexInfo(), "Prog", "Pumpswap")
        assert trade.input_token.ui_amount == 1.5
        assert trade.output_token.ui_amount == 0.5
        assert trade.pools == ["Pool"]
        assert trade.amm == "Pumpswap"
        assert trade.type is TradeType.SELL

    def test_unknown_decimals_is_error(self, tx, new_address):
        view = TransactionView(tx.build())
        event = MemeEvent(
            type=EventType.BUY,
            protocol="Heaven",
            input_token=TokenInfo.unresolved(SOL_MINT, 1),
            output_token=TokenInfo.unresolved(new_address(), 1),
        )
        with pytest.raises(MintDecimalsError):
            build_trade_from_event(view, event, DexInfo(), "Prog", "Heaven")

    def test_same_mint_rejected(self, tx):
        view = TransactionView(tx.build())
        event = MemeEvent(
            type=EventType.BUY,
            protocol="Heaven",
            input_token=TokenInfo.from_raw(SOL_MINT, 1, 9),
            output_token=TokenInfo.from_raw(SOL_MINT, 2, 9),
        )
        with pytest.raises(DecodeError):
            build_trade_from_event(view, event, DexInfo(), "Prog", "Heaven")

    def test_non_trade_event(self, tx):
        event = MemeEvent(type=EventType.CREATE, protocol="Pumpfun")
        assert build_trade_from_event(TransactionView(tx.build()), event, DexInfo(), "Prog", "Pumpfun") is None

    def test_router_context_wins(self, tx, new_address):
        token = new_address()
        view = TransactionView(tx.build())
        event = MemeEvent(
            type=EventType.BUY,
            protocol="Pumpfun",
            input_token=TokenInfo.from_raw(SOL_MINT, 1, 9),
            output_token=TokenInfo.from_raw(token, 2, 6),
        )
        trade = build_trade_from_event(
            view, event, DexInfo(program_id="JupProg", amm="Pumpfun", route="Jupiter"), "PumpProg", "Pumpfun"
        )
        assert trade.program_id == "JupProg"
        assert trade.route == "Jupiter"

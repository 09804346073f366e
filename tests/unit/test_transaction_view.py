"""Unit tests for TransactionView"""
import pytest

from meme_decoder.core.mint_decimals import MintDecimalsSnapshot
from meme_decoder.core.pubkeys import SOL_MINT
from meme_decoder.core.transaction_view import TransactionView
from meme_decoder.errors import MintDecimalsError


class TestIdentity:
    def test_basic_fields(self, tx):
        tx.fee = 7_000
        view = TransactionView(tx.build())
        assert view.signature == tx.signature
        assert view.slot == tx.slot
        assert view.block_time == tx.block_time
        assert view.signer == tx.signer
        assert view.signers == [tx.signer]
        assert view.fee.amount == 7_000
        assert view.fee.decimals == 9
        assert view.compute_units == 50_000
        assert not view.is_failed

    def test_failed(self, tx):
        tx.err = {"InstructionError": [0, "Custom"]}
        assert TransactionView(tx.build()).is_failed

    def test_not_a_transaction(self):
        with pytest.raises(ValueError):
            TransactionView({"slot": 1})


class TestAccounts:
    def test_loaded_addresses_appended(self, tx, new_address):
        writable, readonly = new_address(), new_address()
        data = tx.build()
        data["meta"]["loadedAddresses"] = {"writable": [writable], "readonly": [readonly]}
        view = TransactionView(data)
        assert view.account_keys[-2:] == [writable, readonly]
        assert view.get_account_index(readonly) == len(view.account_keys) - 1
        assert view.get_account_index("missing") == -1

    def test_json_parsed_keys(self, new_address):
        signer, other = new_address(), new_address()
        view = TransactionView({
            "slot": 1,
            "transaction": {
                "signatures": ["sig"],
                "message": {
                    "accountKeys": [
                        {"pubkey": signer, "signer": True, "writable": True},
                        {"pubkey": other, "signer": False, "writable": False},
                    ],
                    "instructions": [{"programId": other, "accounts": [signer], "data": "3Bxs4h24hBtQy9rw"}],
                },
            },
            "meta": {},
        })
        assert view.account_keys == [signer, other]
        assert view.signer == signer
        assert view.instructions[0].program_id == other
        assert view.instructions[0].accounts == (signer,)


class TestInstructions:
    def test_outer_and_inner(self, tx, new_address):
        program, inner_program, account = new_address(), new_address(), new_address()
        outer = tx.add_instruction(program, [account], b"\x01\x02")
        tx.add_inner(outer, inner_program, [account, tx.signer], b"\x09")
        view = TransactionView(tx.build())

        assert view.instructions[0].program_id == program
        assert view.instructions[0].data == b"\x01\x02"
        assert view.inner_outer_indexes == [0]
        inner = view.get_inner_instruction(0, 0)
        assert inner.program_id == inner_program
        assert view.accounts_of(inner) == (account, tx.signer)
        assert view.get_inner_instruction(0, 1) is None
        assert view.get_instruction(5) is None
        assert view.inner_instructions_of(3) == []


class TestBalances:
    def test_token_balance_change(self, tx, new_address):
        mint, account = new_address(), new_address()
        tx.token_balance(account, mint, tx.signer, 1_000_000, 250_000, 6)
        view = TransactionView(tx.build())

        change = view.get_token_balance_change(tx.signer, mint)
        assert change.change == -750_000
        assert view.get_account_token_balance_changes()[tx.signer][mint].ui_change == -0.75
        assert view.get_token_balance_change(tx.signer, new_address()) is None
        assert view.get_token_account_owner(account) == tx.signer

    def test_account_created_in_transaction(self, tx, new_address):
        mint, account = new_address(), new_address()
        tx.token_balance(account, mint, tx.signer, None, 42, 6)
        view = TransactionView(tx.build())
        assert view.get_token_balance_change(tx.signer, mint).change == 42

    def test_sol_balance_change(self, tx, new_address):
        other = new_address()
        tx.sol_balance(tx.signer, 5_000_000_000, 3_500_000_000)
        tx.sol_balance(other, 10, 10)
        view = TransactionView(tx.build())
        assert view.get_sol_balance_change(tx.signer).change == -1_500_000_000
        assert other not in view.get_account_sol_balance_changes()
        assert view.get_sol_balance_change(new_address()) is None


class TestDecimals:
    def test_observed_decimals_win(self, tx, new_address):
        mint = new_address()
        tx.token_balance(new_address(), mint, tx.signer, 0, 1, 6)
        view = TransactionView(tx.build(), MintDecimalsSnapshot({mint: 9}))
        assert view.get_token_decimals(mint) == 6

    def test_snapshot_decimals_used(self, tx, new_address):
        mint = new_address()
        view = TransactionView(tx.build(), {mint: 3})
        assert view.get_token_decimals(mint) == 3
        assert view.get_token_decimals(SOL_MINT) == 9

    def test_unknown_mint(self, tx, new_address):
        view = TransactionView(tx.build())
        with pytest.raises(MintDecimalsError):
            view.get_token_decimals(new_address())
        assert view.get_token_decimals(new_address(), default=None) is None

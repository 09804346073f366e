"""
Pytest fixtures for meme_decoder tests
"""
import os
import struct

import base58
import pytest
from solders.pubkey import Pubkey

from meme_decoder.core.pubkeys import SYSTEM_PROGRAM_ID, TOKEN_PROGRAM

# no .env / config file lookups leaking in from the developer machine
os.environ['TESTING'] = '1'
os.environ.pop('MEME_DECODER_CONFIG', None)
os.environ.pop('MEME_DECODER_LOG_LEVEL', None)
os.environ.pop('MEME_DECODER_THROW_ERROR', None)


def _address() -> str:
    return str(Pubkey.new_unique())


class TxBuilder:
    """Builds ``json``-encoded getTransaction results with compiled instructions."""

    def __init__(self, signer=None, slot=250_000_000, block_time=1_700_000_000):
        self.signer = signer or _address()
        self.signature = base58.b58encode(bytes(Pubkey.new_unique()) * 2).decode()
        self.slot = slot
        self.block_time = block_time
        self.err = None
        self.fee = 5000
        self.keys = [self.signer]
        self.instructions = []
        self.inner = {}
        self.pre_token_balances = []
        self.post_token_balances = []
        self.sol = {}

    def key(self, address):
        if address not in self.keys:
            self.keys.append(address)
        return self.keys.index(address)

    def _compile(self, program_id, accounts, data):
        return {
            "programIdIndex": self.key(program_id),
            "accounts": [self.key(a) for a in accounts],
            "data": base58.b58encode(data).decode(),
        }

    def add_instruction(self, program_id, accounts=(), data=b""):
        """Outer instruction; returns its index."""
        self.instructions.append(self._compile(program_id, accounts, data))
        return len(self.instructions) - 1

    def add_inner(self, outer_index, program_id, accounts=(), data=b""):
        """Inner instruction of ``outer_index``; returns its inner index."""
        group = self.inner.setdefault(outer_index, [])
        group.append(self._compile(program_id, accounts, data))
        return len(group) - 1

    def add_token_transfer(self, outer_index, source, destination, authority, mint, amount, decimals,
                           program_id=TOKEN_PROGRAM):
        """Inner TransferChecked."""
        data = bytes([12]) + struct.pack("<QB", amount, decimals)
        return self.add_inner(outer_index, program_id, [source, mint, destination, authority], data)

    def add_sol_transfer(self, outer_index, source, destination, lamports):
        """Inner system transfer."""
        data = struct.pack("<IQ", 2, lamports)
        return self.add_inner(outer_index, SYSTEM_PROGRAM_ID, [source, destination], data)

    def token_balance(self, account, mint, owner, pre, post, decimals):
        index = self.key(account)
        for rows, amount in ((self.pre_token_balances, pre), (self.post_token_balances, post)):
            if amount is None:
                continue
            rows.append({
                "accountIndex": index,
                "mint": mint,
                "owner": owner,
                "uiTokenAmount": {"amount": str(amount), "decimals": decimals},
            })

    def sol_balance(self, address, pre, post):
        self.key(address)
        self.sol[address] = (pre, post)

    def build(self):
        return {
            "slot": self.slot,
            "blockTime": self.block_time,
            "transaction": {
                "signatures": [self.signature],
                "message": {
                    "header": {
                        "numRequiredSignatures": 1,
                        "numReadonlySignedAccounts": 0,
                        "numReadonlyUnsignedAccounts": 0,
                    },
                    "accountKeys": list(self.keys),
                    "instructions": list(self.instructions),
                },
            },
            "meta": {
                "err": self.err,
                "fee": self.fee,
                "computeUnitsConsumed": 50_000,
                "preBalances": [self.sol.get(k, (0, 0))[0] for k in self.keys],
                "postBalances": [self.sol.get(k, (0, 0))[1] for k in self.keys],
                "preTokenBalances": list(self.pre_token_balances),
                "postTokenBalances": list(self.post_token_balances),
                "innerInstructions": [
                    {"index": index, "instructions": list(ixs)}
                    for index, ixs in sorted(self.inner.items())
                ],
                "loadedAddresses": {"writable": [], "readonly": []},
            },
        }


@pytest.fixture
def new_address():
    """Factory of fresh, valid base58 addresses"""
    return _address


@pytest.fixture
def make_tx():
    """Factory of TxBuilder instances"""
    return TxBuilder


@pytest.fixture
def tx(make_tx):
    return make_tx()


@pytest.fixture
def pubkey_bytes():
    """base58 address -> 32 raw bytes, for building event payloads"""
    return lambda address: bytes(Pubkey.from_string(address))


@pytest.fixture
def borsh_str():
    """Borsh string encoding: u32 length prefix + UTF-8 bytes"""
    def encode(value: str) -> bytes:
        raw = value.encode()
        return struct.pack("<I", len(raw)) + raw
    return encode

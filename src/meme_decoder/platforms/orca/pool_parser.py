"""
Orca Whirlpool swaps, inferred from correlated transfers.

swap accounts:    0: token_program, 1: token_authority, 2: whirlpool, ...
swap_v2 accounts: 0: token_program_a, 1: token_program_b, 2: memo_program,
                  3: token_authority, 4: whirlpool, ...
"""

from meme_decoder.core.discriminators import ORCA_LIQUIDITY, ORCA_SWAP, ORCA_SWAP_V2
from meme_decoder.core.pubkeys import DexPrograms
from meme_decoder.interfaces.decoder import PoolSwapParser
from meme_decoder.interfaces.models import ClassifiedInstruction, Protocol


class OrcaPoolParser(PoolSwapParser):
    protocol = Protocol.ORCA
    program_ids = (DexPrograms.ORCA.id,)

    LIQUIDITY_DISCRIMINATORS = {DexPrograms.ORCA.id: ORCA_LIQUIDITY}

    def pool_address(self, instruction: ClassifiedInstruction) -> str | None:
        data, accounts = instruction.data, instruction.accounts
        if data[:8] == ORCA_SWAP and len(accounts) > 2:
            return accounts[2]
        if data[:8] == ORCA_SWAP_V2 and len(accounts) > 4:
            return accounts[4]
        return None

"""
Raydium V4 / AMM / CLMM / CPMM swaps, inferred from correlated transfers.

The first two transfers are the swap legs; a third one, when present, is the
fee.
"""

from meme_decoder.core.discriminators import (
    RAYDIUM_CL_LIQUIDITY,
    RAYDIUM_CPMM_LIQUIDITY,
    RAYDIUM_V4_LIQUIDITY,
)
from meme_decoder.core.pubkeys import DexPrograms, get_program_name
from meme_decoder.core.trade_synthesizer import transfer_to_fee_info
from meme_decoder.interfaces.decoder import PoolSwapParser
from meme_decoder.interfaces.models import ClassifiedInstruction, FeeInfo, Protocol, TransferRecord

# the pool account index is only trusted for full-size swap instructions
MIN_POOL_ACCOUNTS = 6


class RaydiumPoolParser(PoolSwapParser):
    protocol = Protocol.RAYDIUM
    program_ids = (
        DexPrograms.RAYDIUM_V4.id,
        DexPrograms.RAYDIUM_AMM.id,
        DexPrograms.RAYDIUM_CL.id,
        DexPrograms.RAYDIUM_CPMM.id,
    )

    LIQUIDITY_DISCRIMINATORS = {
        DexPrograms.RAYDIUM_V4.id: RAYDIUM_V4_LIQUIDITY,
        DexPrograms.RAYDIUM_AMM.id: RAYDIUM_V4_LIQUIDITY,
        DexPrograms.RAYDIUM_CL.id: RAYDIUM_CL_LIQUIDITY,
        DexPrograms.RAYDIUM_CPMM.id: RAYDIUM_CPMM_LIQUIDITY,
    }
    # V4/AMM: amm id, CLMM: pool_state, CPMM: pool_state
    POOL_ACCOUNT_INDEX = {
        DexPrograms.RAYDIUM_V4.id: 1,
        DexPrograms.RAYDIUM_AMM.id: 1,
        DexPrograms.RAYDIUM_CL.id: 2,
        DexPrograms.RAYDIUM_CPMM.id: 3,
    }

    def select_transfers(self, instruction: ClassifiedInstruction, transfers: list[TransferRecord]) -> list[TransferRecord]:
        return transfers[:2]

    def pool_address(self, instruction: ClassifiedInstruction) -> str | None:
        if len(instruction.accounts) < MIN_POOL_ACCOUNTS:
            return None
        return super().pool_address(instruction)

    def extra_fee(self, instruction: ClassifiedInstruction, transfers: list[TransferRecord]) -> FeeInfo | None:
        if len(transfers) > 2:
            return transfer_to_fee_info(transfers[2], get_program_name(instruction.program_id))
        return None

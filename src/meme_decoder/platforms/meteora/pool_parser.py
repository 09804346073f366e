"""
Meteora DLMM / DAMM / DAMM v2 swaps, inferred from correlated transfers.
"""

from meme_decoder.core.discriminators import (
    METEORA_DAMM_LIQUIDITY,
    METEORA_DAMM_V2_LIQUIDITY,
    METEORA_DLMM_LIQUIDITY,
)
from meme_decoder.core.pubkeys import DexPrograms
from meme_decoder.interfaces.decoder import PoolSwapParser
from meme_decoder.interfaces.models import ClassifiedInstruction, Protocol, TransferRecord


class MeteoraPoolParser(PoolSwapParser):
    protocol = Protocol.METEORA
    program_ids = (
        DexPrograms.METEORA.id,
        DexPrograms.METEORA_DAMM.id,
        DexPrograms.METEORA_DAMM_V2.id,
    )

    LIQUIDITY_DISCRIMINATORS = {
        DexPrograms.METEORA.id: METEORA_DLMM_LIQUIDITY,
        DexPrograms.METEORA_DAMM.id: METEORA_DAMM_LIQUIDITY,
        DexPrograms.METEORA_DAMM_V2.id: METEORA_DAMM_V2_LIQUIDITY,
    }
    # DLMM: lb_pair, DAMM: pool, DAMM v2: pool after pool_authority
    POOL_ACCOUNT_INDEX = {
        DexPrograms.METEORA.id: 0,
        DexPrograms.METEORA_DAMM.id: 0,
        DexPrograms.METEORA_DAMM_V2.id: 1,
    }

    def select_transfers(self, instruction: ClassifiedInstruction, transfers: list[TransferRecord]) -> list[TransferRecord]:
        # DLMM host/protocol fee transfers follow the two swap legs
        if instruction.program_id == DexPrograms.METEORA.id:
            return transfers[:2]
        return transfers

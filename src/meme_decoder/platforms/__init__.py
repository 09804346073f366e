"""
Protocol decoders, one per protocol family.

``DECODERS`` is the closed registry: every ``Protocol`` member maps to exactly
one decoder class. ``PROGRAM_DECODERS`` selects the decoder for a program id.
"""

from meme_decoder.interfaces.decoder import ProtocolDecoder
from meme_decoder.interfaces.models import Protocol
from meme_decoder.platforms.boopfun import BoopfunEventParser
from meme_decoder.platforms.heaven import HeavenEventParser
from meme_decoder.platforms.meteora import MeteoraDBCEventParser, MeteoraPoolParser
from meme_decoder.platforms.moonit import MoonitEventParser
from meme_decoder.platforms.orca import OrcaPoolParser
from meme_decoder.platforms.pumpfun import PumpfunEventParser
from meme_decoder.platforms.pumpswap import PumpswapEventParser
from meme_decoder.platforms.raydium import RaydiumLaunchpadEventParser, RaydiumPoolParser
from meme_decoder.platforms.sugar import SugarEventParser

DECODERS: dict[Protocol, type[ProtocolDecoder]] = {
    Protocol.PUMP_FUN: PumpfunEventParser,
    Protocol.PUMP_SWAP: PumpswapEventParser,
    Protocol.BOOP_FUN: BoopfunEventParser,
    Protocol.METEORA_DBC: MeteoraDBCEventParser,
    Protocol.MOONIT: MoonitEventParser,
    Protocol.RAYDIUM_LAUNCHPAD: RaydiumLaunchpadEventParser,
    Protocol.SUGAR: SugarEventParser,
    Protocol.HEAVEN: HeavenEventParser,
    Protocol.RAYDIUM: RaydiumPoolParser,
    Protocol.METEORA: MeteoraPoolParser,
    Protocol.ORCA: OrcaPoolParser,
}

PROGRAM_DECODERS: dict[str, type[ProtocolDecoder]] = {
    program_id: decoder
    for decoder in DECODERS.values()
    for program_id in decoder.program_ids
}


def get_decoder(program_id: str) -> type[ProtocolDecoder] | None:
    return PROGRAM_DECODERS.get(program_id)


__all__ = [
    "DECODERS",
    "PROGRAM_DECODERS",
    "get_decoder",
    "BoopfunEventParser",
    "HeavenEventParser",
    "MeteoraDBCEventParser",
    "MeteoraPoolParser",
    "MoonitEventParser",
    "OrcaPoolParser",
    "PumpfunEventParser",
    "PumpswapEventParser",
    "RaydiumLaunchpadEventParser",
    "RaydiumPoolParser",
    "SugarEventParser",
]

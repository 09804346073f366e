"""
Meteora programs: the DBC launchpad (event decoding) and the DLMM / DAMM /
DAMM v2 pools (transfer-inferred swaps).
"""

from meme_decoder.platforms.meteora.dbc_event_parser import MeteoraDBCEventParser
from meme_decoder.platforms.meteora.pool_parser import MeteoraPoolParser

__all__ = ["MeteoraDBCEventParser", "MeteoraPoolParser"]

"""
Raydium programs: the Launchpad (LaunchLab) bonding curve and the V4 / AMM /
CLMM / CPMM pools.
"""

from meme_decoder.platforms.raydium.launchpad_event_parser import RaydiumLaunchpadEventParser
from meme_decoder.platforms.raydium.pool_parser import RaydiumPoolParser

__all__ = ["RaydiumLaunchpadEventParser", "RaydiumPoolParser"]

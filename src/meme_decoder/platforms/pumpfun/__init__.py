"""
Pump.fun platform.

Pump.fun emits Anchor self-CPI events for trades, creations, bonding curve
completion and migration to PumpSwap; everything is decoded from those.
"""

from meme_decoder.platforms.pumpfun.event_parser import PumpfunEventParser

__all__ = ["PumpfunEventParser"]

"""PumpSwap AMM (pump.fun migration destination)."""

from meme_decoder.platforms.pumpswap.event_parser import PumpswapEventParser

__all__ = ["PumpswapEventParser"]

"""Heaven bonding curve launchpad."""

from meme_decoder.platforms.heaven.event_parser import HeavenEventParser

__all__ = ["HeavenEventParser"]

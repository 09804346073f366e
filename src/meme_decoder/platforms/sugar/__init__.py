"""Sugar bonding curve launchpad."""

from meme_decoder.platforms.sugar.event_parser import SugarEventParser

__all__ = ["SugarEventParser"]

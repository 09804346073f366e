"""Boop.fun bonding curve launchpad."""

from meme_decoder.platforms.boopfun.event_parser import BoopfunEventParser

__all__ = ["BoopfunEventParser"]

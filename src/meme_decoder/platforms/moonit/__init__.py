"""Moonit (formerly Moonshot) bonding curve launchpad."""

from meme_decoder.platforms.moonit.event_parser import MoonitEventParser

__all__ = ["MoonitEventParser"]

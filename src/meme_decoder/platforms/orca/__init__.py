"""Orca Whirlpools."""

from meme_decoder.platforms.orca.pool_parser import OrcaPoolParser

__all__ = ["OrcaPoolParser"]

"""
Exception hierarchy for the decoder.

Structural and bounds failures are hard errors: they are raised from decode
routines and caught once per transaction by the DEX parser.
"""

from __future__ import annotations


class DecoderError(Exception):
    """Base class for every error raised by meme_decoder."""


class BinaryReaderError(DecoderError):
    """Raised when a read would run past the end of the buffer."""

    def __init__(self, offset: int, size: int, length: int):
        self.offset = offset
        self.size = size
        self.length = length
        super().__init__(
            f"Buffer overflow: trying to read {size} bytes at offset {offset} "
            f"of {length}-byte buffer"
        )


class DecodeError(DecoderError):
    """Structurally malformed instruction for a known protocol.

    Carries the protocol name and the instruction position (``idx``) so the
    transaction boundary can report exactly what failed.
    """

    def __init__(self, message: str, protocol: str | None = None, idx: str | None = None):
        self.protocol = protocol
        self.idx = idx
        super().__init__(message)

    def with_context(self, protocol: str, idx: str) -> "DecodeError":
        """Fill in protocol/idx when the raising helper did not know them."""
        if self.protocol is None:
            self.protocol = protocol
        if self.idx is None:
            self.idx = idx
        return self

    def __str__(self) -> str:
        base = super().__str__()
        if self.protocol or self.idx:
            return f"{base} (protocol={self.protocol or '-'}, idx={self.idx or '-'})"
        return base


class MissingTransferError(DecodeError):
    """A decode routine needed a correlated transfer that is not there."""


class BalanceNotFoundError(DecodeError):
    """Pre/post balance snapshot missing for an account or mint that must be present."""


class MintDecimalsError(DecoderError):
    """Mint decimals could not be resolved from the transaction or the snapshot."""

    def __init__(self, mint: str):
        self.mint = mint
        super().__init__(f"Unknown decimals for mint {mint}")


class ConfigError(DecoderError):
    """Invalid decoder settings."""

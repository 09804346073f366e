"""Solana meme / DEX transaction decoder."""

from meme_decoder.config import DecoderSettings, ParseConfig, load_settings
from meme_decoder.core.mint_decimals import MintDecimalsCache, MintDecimalsSnapshot
from meme_decoder.dex_parser import DexParser
from meme_decoder.errors import (
    BalanceNotFoundError,
    BinaryReaderError,
    ConfigError,
    DecodeError,
    DecoderError,
    MintDecimalsError,
    MissingTransferError,
)
from meme_decoder.interfaces.models import (
    EventType,
    MemeEvent,
    ParseResult,
    Protocol,
    TradeInfo,
    TradeType,
    TransferRecord,
)

__version__ = "0.1.0"

__all__ = [
    "DexParser",
    "ParseConfig",
    "DecoderSettings",
    "load_settings",
    "MintDecimalsCache",
    "MintDecimalsSnapshot",
    "Protocol",
    "EventType",
    "TradeType",
    "MemeEvent",
    "TradeInfo",
    "TransferRecord",
    "ParseResult",
    "DecoderError",
    "BinaryReaderError",
    "DecodeError",
    "MissingTransferError",
    "BalanceNotFoundError",
    "MintDecimalsError",
    "ConfigError",
]

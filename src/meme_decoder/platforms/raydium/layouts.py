"""
Borsh layouts of Raydium Launchpad self-CPI events.
"""

from __future__ import annotations

from dataclasses import dataclass

from meme_decoder.core.binary_reader import BinaryReader

# TradeEvent size before creator fees were added
TRADE_EVENT_V1_SIZE = 130

TRADE_DIRECTION_BUY = 0


@dataclass(frozen=True)
class TradeEvent:
    pool_state: str
    total_base_sell: int
    virtual_base: int
    virtual_quote: int
    real_base_before: int
    real_quote_before: int
    real_base_after: int
    real_quote_after: int
    amount_in: int
    amount_out: int
    protocol_fee: int
    platform_fee: int
    creator_fee: int
    share_fee: int
    trade_direction: int
    pool_status: int

    @property
    def is_buy(self) -> bool:
        return self.trade_direction == TRADE_DIRECTION_BUY

    @classmethod
    def decode(cls, data: bytes) -> TradeEvent:
        """Pick the layout by payload size; v1 has no creator fee."""
        if len(data) > TRADE_EVENT_V1_SIZE:
            return cls._decode_v2(BinaryReader(data))
        return cls._decode_v1(BinaryReader(data))

    @classmethod
    def _decode_v1(cls, reader: BinaryReader) -> TradeEvent:
        return cls(
            pool_state=reader.read_pubkey(),
            total_base_sell=reader.read_u64(),
            virtual_base=reader.read_u64(),
            virtual_quote=reader.read_u64(),
            real_base_before=reader.read_u64(),
            real_quote_before=reader.read_u64(),
            real_base_after=reader.read_u64(),
            real_quote_after=reader.read_u64(),
            amount_in=reader.read_u64(),
            amount_out=reader.read_u64(),
            protocol_fee=reader.read_u64(),
            platform_fee=reader.read_u64(),
            creator_fee=0,
            share_fee=reader.read_u64(),
            trade_direction=reader.read_u8(),
            pool_status=reader.read_u8(),
        )

    @classmethod
    def _decode_v2(cls, reader: BinaryReader) -> TradeEvent:
        return cls(
            pool_state=reader.read_pubkey(),
            total_base_sell=reader.read_u64(),
            virtual_base=reader.read_u64(),
            virtual_quote=reader.read_u64(),
            real_base_before=reader.read_u64(),
            real_quote_before=reader.read_u64(),
            real_base_after=reader.read_u64(),
            real_quote_after=reader.read_u64(),
            amount_in=reader.read_u64(),
            amount_out=reader.read_u64(),
            protocol_fee=reader.read_u64(),
            platform_fee=reader.read_u64(),
            creator_fee=reader.read_u64(),
            share_fee=reader.read_u64(),
            trade_direction=reader.read_u8(),
            pool_status=reader.read_u8(),
        )


@dataclass(frozen=True)
class MintParams:
    decimals: int
    name: str
    symbol: str
    uri: str

    @classmethod
    def read(cls, reader: BinaryReader) -> MintParams:
        return cls(
            decimals=reader.read_u8(),
            name=reader.read_string(),
            symbol=reader.read_string(),
            uri=reader.read_string(),
        )


@dataclass(frozen=True)
class PoolCreateEvent:
    pool_state: str
    creator: str
    config: str
    base_mint_param: MintParams

    @classmethod
    def decode(cls, data: bytes) -> PoolCreateEvent:
        # curve and vesting params follow; not needed
        reader = BinaryReader(data)
        return cls(
            pool_state=reader.read_pubkey(),
            creator=reader.read_pubkey(),
            config=reader.read_pubkey(),
            base_mint_param=MintParams.read(reader),
        )

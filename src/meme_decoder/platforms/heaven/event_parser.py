"""
Heaven implementation of EventParser.

Trade accounts: 4: pool, 5: user, 6: base_mint, 7: quote_mint, ..., 12: config
Pool creation may include the creator's initial buy; its transfers follow the
liquidity deposit. Token metadata is created through Metaplex CreateV1.
"""

from meme_decoder.core.binary_reader import BinaryReader
from meme_decoder.core.discriminators import HeavenDiscriminators, MetaplexDiscriminators
from meme_decoder.core.pubkeys import SOL_MINT, DexPrograms
from meme_decoder.core.trade_synthesizer import process_meme_transfer_data, process_swap_data
from meme_decoder.interfaces.decoder import EventParser, EventRoute, InstructionContext
from meme_decoder.interfaces.models import EventType, MemeEvent, Protocol, TokenInfo

HEAVEN_TOKEN_DECIMALS = 9


class HeavenEventParser(EventParser):
    """Heaven buy / sell / initial buy / create."""

    protocol = Protocol.HEAVEN
    program_ids = (DexPrograms.HEAVEN.id,)
    classified_program_ids = (DexPrograms.HEAVEN.id, DexPrograms.METAPLEX.id)
    default_amm = DexPrograms.HEAVEN.name

    def _decode_trade(self, data: bytes, ctx: InstructionContext, is_buy: bool) -> MemeEvent:
        reader = BinaryReader(data)
        amount_in = reader.read_u64()
        amount_out = reader.read_u64()

        base_mint = ctx.account(6)
        quote_mint = ctx.account(7)
        base = TokenInfo.unresolved(base_mint, amount_out if is_buy else amount_in)
        quote = TokenInfo.unresolved(quote_mint, amount_in if is_buy else amount_out)

        event = MemeEvent(
            type=EventType.BUY if is_buy else EventType.SELL,
            protocol=self.protocol.value,
            user=ctx.account(5),
            base_mint=base_mint,
            quote_mint=quote_mint,
            input_token=quote if is_buy else base,
            output_token=base if is_buy else quote,
            platform_config=ctx.account(12),
            pool=ctx.account(4),
            bonding_curve=ctx.account(4),
        )
        return process_meme_transfer_data(
            self.view, ctx.transfers, event, base_mint, True, 0, self.dex_info
        )

    def _decode_buy(self, data: bytes, ctx: InstructionContext) -> MemeEvent:
        return self._decode_trade(data, ctx, is_buy=True)

    def _decode_sell(self, data: bytes, ctx: InstructionContext) -> MemeEvent:
        return self._decode_trade(data, ctx, is_buy=False)

    def _decode_initial_buy(self, data: bytes, ctx: InstructionContext) -> MemeEvent | None:
        # 4: creator, 5: base_mint, 6: quote_mint, 10: pool, 11: config
        # the first transfer seeds the pool, the initial buy follows
        if len(ctx.transfers) < 3:
            return None
        trade = process_swap_data(self.view, ctx.transfers[1:], self.dex_info, skip_native=True)
        if trade is None:
            return None

        return MemeEvent(
            type=EventType.BUY,
            protocol=self.protocol.value,
            user=ctx.account(4),
            base_mint=ctx.account(5),
            quote_mint=ctx.account(6),
            input_token=trade.input_token,
            output_token=trade.output_token,
            fee=trade.fee.amount_raw if trade.fee else None,
            platform_config=ctx.account(11),
            pool=ctx.account(10),
            bonding_curve=ctx.account(10),
        )

    def _decode_create(self, data: bytes, ctx: InstructionContext) -> MemeEvent | None:
        if ctx.program_id != DexPrograms.METAPLEX.id:
            return None
        reader = BinaryReader(data)
        reader.read_u8()  # CreateArgs variant
        name = reader.read_string()
        symbol = reader.read_string()
        uri = reader.read_string()

        # 2: mint, 4: payer
        return MemeEvent(
            type=EventType.CREATE,
            protocol=self.protocol.value,
            user=ctx.account(4),
            creator=ctx.account(4),
            base_mint=ctx.account(2),
            quote_mint=SOL_MINT,
            name=name,
            symbol=symbol,
            uri=uri,
            decimals=HEAVEN_TOKEN_DECIMALS,
        )

    ROUTES = (
        EventRoute(EventType.BUY, (HeavenDiscriminators.BUY,), 8, _decode_buy),
        EventRoute(EventType.SELL, (HeavenDiscriminators.SELL,), 8, _decode_sell),
        EventRoute(EventType.BUY, (HeavenDiscriminators.CREATE_POOL,), 8, _decode_initial_buy),
        EventRoute(EventType.CREATE, (MetaplexDiscriminators.CREATE_V1,), 1, _decode_create),
    )

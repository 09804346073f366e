"""
Sugar implementation of EventParser.

Trade accounts: 1: mint, 2: bonding_curve, ..., 6: user, ..., 12: config
Trade data: u16 (unused), amount_in u64, amount_out u64
"""

from meme_decoder.core.binary_reader import BinaryReader
from meme_decoder.core.discriminators import SugarDiscriminators
from meme_decoder.core.pubkeys import SOL_DECIMALS, SOL_MINT, DexPrograms
from meme_decoder.core.trade_synthesizer import process_meme_transfer_data
from meme_decoder.interfaces.decoder import EventParser, EventRoute, InstructionContext
from meme_decoder.interfaces.models import EventType, MemeEvent, Protocol, TokenInfo

SUGAR_TOKEN_DECIMALS = 6
SUGAR_TOTAL_SUPPLY = 1_000_000_000 * 10**SUGAR_TOKEN_DECIMALS


class SugarEventParser(EventParser):
    """Sugar buy / sell / create / migrate."""

    protocol = Protocol.SUGAR
    program_ids = (DexPrograms.SUGAR.id,)
    default_amm = DexPrograms.SUGAR.name

    def _decode_trade(self, data: bytes, ctx: InstructionContext, is_buy: bool) -> MemeEvent:
        reader = BinaryReader(data)
        reader.read_u16()
        amount_in = reader.read_u64()
        amount_out = reader.read_u64()

        mint = ctx.account(1)
        token_decimals = self.view.get_token_decimals(mint, default=SUGAR_TOKEN_DECIMALS)
        if is_buy:
            input_token = TokenInfo.from_raw(SOL_MINT, amount_in, SOL_DECIMALS)
            output_token = TokenInfo.from_raw(mint, amount_out, token_decimals)
        else:
            input_token = TokenInfo.from_raw(mint, amount_in, token_decimals)
            output_token = TokenInfo.from_raw(SOL_MINT, amount_out, SOL_DECIMALS)

        event = MemeEvent(
            type=EventType.BUY if is_buy else EventType.SELL,
            protocol=self.protocol.value,
            user=ctx.account(6),
            base_mint=mint,
            quote_mint=SOL_MINT,
            input_token=input_token,
            output_token=output_token,
            platform_config=ctx.account(12),
            pool=ctx.account(2),
            bonding_curve=ctx.account(2),
        )
        return process_meme_transfer_data(
            self.view, ctx.transfers, event, mint, False, 0, self.dex_info
        )

    def _decode_buy(self, data: bytes, ctx: InstructionContext) -> MemeEvent:
        return self._decode_trade(data, ctx, is_buy=True)

    def _decode_sell(self, data: bytes, ctx: InstructionContext) -> MemeEvent:
        return self._decode_trade(data, ctx, is_buy=False)

    def _decode_create(self, data: bytes, ctx: InstructionContext) -> MemeEvent:
        reader = BinaryReader(data)
        name = reader.read_string()
        symbol = reader.read_string()
        uri = reader.read_string()

        # 2: bonding_curve, 3: mint, 6: creator
        return MemeEvent(
            type=EventType.CREATE,
            protocol=self.protocol.value,
            user=ctx.account(6),
            creator=ctx.account(6),
            base_mint=ctx.account(3),
            quote_mint=SOL_MINT,
            name=name,
            symbol=symbol,
            uri=uri,
            decimals=SUGAR_TOKEN_DECIMALS,
            total_supply=SUGAR_TOTAL_SUPPLY,
            pool=ctx.account(2),
            bonding_curve=ctx.account(2),
        )

    def _decode_migrate(self, data: bytes, ctx: InstructionContext) -> MemeEvent:
        # 1: mint, 3: bonding_curve, 12: user, 15: raydium pool
        return MemeEvent(
            type=EventType.MIGRATE,
            protocol=self.protocol.value,
            user=ctx.account(12),
            base_mint=ctx.account(1),
            quote_mint=SOL_MINT,
            bonding_curve=ctx.account(3),
            pool=ctx.account(15),
            pool_dex=DexPrograms.RAYDIUM_CPMM.name,
        )

    ROUTES = (
        EventRoute(
            EventType.BUY,
            (SugarDiscriminators.BUY_EXACT_IN, SugarDiscriminators.BUY_EXACT_OUT, SugarDiscriminators.BUY_MAX_OUT),
            8,
            _decode_buy,
        ),
        EventRoute(
            EventType.SELL,
            (SugarDiscriminators.SELL_EXACT_IN, SugarDiscriminators.SELL_EXACT_OUT),
            8,
            _decode_sell,
        ),
        EventRoute(EventType.CREATE, (SugarDiscriminators.CREATE,), 8, _decode_create),
        EventRoute(EventType.MIGRATE, (SugarDiscriminators.MIGRATE,), 8, _decode_migrate),
    )

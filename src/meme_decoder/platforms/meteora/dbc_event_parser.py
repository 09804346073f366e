"""
Meteora DBC (Dynamic Bonding Curve) implementation of EventParser.

Swap accounts:
0: pool_authority, 1: config, 2: pool, 3: input_token_account,
4: output_token_account, 5: base_vault, 6: quote_vault, 7: base_mint,
8: quote_mint, 9: payer, ...
"""

from meme_decoder.core.binary_reader import BinaryReader
from meme_decoder.core.discriminators import MeteoraDBCDiscriminators
from meme_decoder.core.pubkeys import DexPrograms
from meme_decoder.core.trade_synthesizer import get_account_trade_type, process_swap_data
from meme_decoder.errors import DecodeError
from meme_decoder.interfaces.decoder import EventParser, EventRoute, InstructionContext
from meme_decoder.interfaces.models import EventType, MemeEvent, Protocol, TokenInfo, TradeType
from meme_decoder.utils.logger import get_logger

logger = get_logger(__name__)

CREATE_MIN_ACCOUNTS = 10


class MeteoraDBCEventParser(EventParser):
    """Meteora DBC trades, pool creation and migrations."""

    protocol = Protocol.METEORA_DBC
    program_ids = (DexPrograms.METEORA_DBC.id,)
    default_amm = DexPrograms.METEORA_DBC.name

    def _decode_trade(self, data: bytes, ctx: InstructionContext) -> MemeEvent:
        reader = BinaryReader(data)
        amount_in = reader.read_u64()
        amount_out = reader.read_u64()  # minimum_amount_out

        pool = ctx.account(2)
        input_token_account = ctx.account(3)
        output_token_account = ctx.account(4)
        base_mint = ctx.account(7)
        quote_mint = ctx.account(8)

        trade_type = get_account_trade_type(
            ctx.signer, base_mint, input_token_account, output_token_account, self.view
        )
        if trade_type is TradeType.SELL:
            input_token = TokenInfo.unresolved(base_mint, amount_in)
            output_token = TokenInfo.unresolved(quote_mint, amount_out)
        else:
            input_token = TokenInfo.unresolved(quote_mint, amount_in)
            output_token = TokenInfo.unresolved(base_mint, amount_out)

        event = MemeEvent(
            type=EventType(trade_type.value),
            protocol=self.protocol.value,
            user=ctx.account(9),
            base_mint=base_mint,
            quote_mint=quote_mint,
            input_token=input_token,
            output_token=output_token,
            pool=pool,
            bonding_curve=pool,
        )

        # executed amounts, the instruction only has limits
        if len(ctx.transfers) >= 2:
            trade = process_swap_data(self.view, ctx.transfers[:2], self.dex_info)
            if trade is not None:
                event.input_token = trade.input_token
                event.output_token = trade.output_token
        else:
            logger.debug(f"[DBC] swap at {ctx.instruction.idx} has no correlated transfers, using limits")
        return event

    def _decode_create(self, data: bytes, ctx: InstructionContext) -> MemeEvent:
        if len(ctx.accounts) < CREATE_MIN_ACCOUNTS:
            raise DecodeError(f"pool creation needs {CREATE_MIN_ACCOUNTS} accounts, got {len(ctx.accounts)}")

        reader = BinaryReader(data)
        name = reader.read_string()
        symbol = reader.read_string()
        uri = reader.read_string()
        base_mint = ctx.account(3)

        return MemeEvent(
            type=EventType.CREATE,
            protocol=self.protocol.value,
            user=ctx.account(2),
            creator=ctx.account(2),
            base_mint=base_mint,
            quote_mint=ctx.account(4),
            name=name,
            symbol=symbol,
            uri=uri,
            decimals=self.view.get_token_decimals(base_mint, default=None),
            platform_config=ctx.account(0),
            pool=ctx.account(5),
            bonding_curve=ctx.account(5),
        )

    def _decode_migrate(self, ctx: InstructionContext, base_index: int, quote_index: int, pool_dex: str) -> MemeEvent:
        return MemeEvent(
            type=EventType.MIGRATE,
            protocol=self.protocol.value,
            user=ctx.signer,
            base_mint=ctx.account(base_index),
            quote_mint=ctx.account(quote_index),
            platform_config=ctx.account(2),
            bonding_curve=ctx.account(0),
            pool=ctx.account(4),
            pool_dex=pool_dex,
        )

    def _decode_migrate_damm(self, data: bytes, ctx: InstructionContext) -> MemeEvent:
        # 0: virtual_pool, 2: config, 4: pool, 7: base_mint, 8: quote_mint
        return self._decode_migrate(ctx, 7, 8, DexPrograms.METEORA_DAMM.name)

    def _decode_migrate_damm_v2(self, data: bytes, ctx: InstructionContext) -> MemeEvent:
        # 0: virtual_pool, 2: config, 4: pool, 13: base_mint, 14: quote_mint
        return self._decode_migrate(ctx, 13, 14, DexPrograms.METEORA_DAMM_V2.name)

    ROUTES = (
        EventRoute(
            EventType.SWAP,
            (MeteoraDBCDiscriminators.SWAP, MeteoraDBCDiscriminators.SWAP2),
            8,
            _decode_trade,
        ),
        EventRoute(
            EventType.CREATE,
            (
                MeteoraDBCDiscriminators.INITIALIZE_VIRTUAL_POOL_WITH_SPL_TOKEN,
                MeteoraDBCDiscriminators.INITIALIZE_VIRTUAL_POOL_WITH_TOKEN2022,
            ),
            8,
            _decode_create,
        ),
        EventRoute(EventType.MIGRATE, (MeteoraDBCDiscriminators.METEORA_DBC_MIGRATE_DAMM,), 8, _decode_migrate_damm),
        EventRoute(EventType.MIGRATE, (MeteoraDBCDiscriminators.METEORA_DBC_MIGRATE_DAMM_V2,), 8, _decode_migrate_damm_v2),
    )

"""
Raydium Launchpad implementation of EventParser.

Trade instructions only carry limits; executed amounts and fees are in the
TradeEvent the program logs through a self-CPI right after.

Trade accounts:
0: payer, 1: authority, 2: global_config, 3: platform_config, 4: pool_state,
5: user_base_token, 6: user_quote_token, 7: base_vault, 8: quote_vault,
9: base_token_mint, 10: quote_token_mint, ...
"""

from meme_decoder.core.discriminators import RaydiumLaunchpadDiscriminators
from meme_decoder.core.pubkeys import SOL_DECIMALS, DexPrograms
from meme_decoder.errors import DecodeError
from meme_decoder.interfaces.decoder import EventParser, EventRoute, InstructionContext
from meme_decoder.interfaces.models import EventType, MemeEvent, Protocol, RawInstruction, TokenInfo
from meme_decoder.platforms.raydium.layouts import PoolCreateEvent, TradeEvent

LAUNCHPAD_TOKEN_DECIMALS = 6

_EVENT_PREFIX = 16


class RaydiumLaunchpadEventParser(EventParser):
    """Raydium Launchpad trades, pool creation and migrations."""

    protocol = Protocol.RAYDIUM_LAUNCHPAD
    program_ids = (DexPrograms.RAYDIUM_LCP.id,)
    default_amm = DexPrograms.RAYDIUM_LCP.name

    def _find_trade_event(self, ctx: InstructionContext) -> RawInstruction:
        """First TradeEvent log after the instruction within the same outer instruction."""
        inner = self.view.inner_instructions_of(ctx.outer_index)
        start = 0 if ctx.inner_index is None else ctx.inner_index + 1
        for ix in inner[start:]:
            if ix.program_id == ctx.program_id and ix.data[:_EVENT_PREFIX] == RaydiumLaunchpadDiscriminators.TRADE_EVENT:
                return ix
        raise DecodeError("trade event log not found")

    def _decode_trade(self, data: bytes, ctx: InstructionContext) -> MemeEvent:
        log = self._find_trade_event(ctx)
        trade = TradeEvent.decode(log.data[_EVENT_PREFIX:])

        base_mint = ctx.account(9)
        quote_mint = ctx.account(10)
        base_decimals = self.view.get_token_decimals(base_mint, default=LAUNCHPAD_TOKEN_DECIMALS)
        quote_decimals = self.view.get_token_decimals(quote_mint, default=SOL_DECIMALS)

        if trade.is_buy:
            input_token = TokenInfo.from_raw(quote_mint, trade.amount_in, quote_decimals)
            output_token = TokenInfo.from_raw(base_mint, trade.amount_out, base_decimals)
        else:
            input_token = TokenInfo.from_raw(base_mint, trade.amount_in, base_decimals)
            output_token = TokenInfo.from_raw(quote_mint, trade.amount_out, quote_decimals)

        return MemeEvent(
            type=EventType.BUY if trade.is_buy else EventType.SELL,
            protocol=self.protocol.value,
            user=ctx.account(0),
            base_mint=base_mint,
            quote_mint=quote_mint,
            input_token=input_token,
            output_token=output_token,
            protocol_fee=trade.protocol_fee,
            platform_fee=trade.platform_fee,
            creator_fee=trade.creator_fee,
            share_fee=trade.share_fee,
            platform_config=ctx.account(3),
            pool=trade.pool_state,
            bonding_curve=trade.pool_state,
            pool_a_reserve=trade.virtual_base,
            pool_b_reserve=trade.virtual_quote,
        )

    def _decode_create(self, data: bytes, ctx: InstructionContext) -> MemeEvent:
        event = PoolCreateEvent.decode(data)

        # initialize accounts: 3: platform_config, 6: base_mint, 7: quote_mint
        outer = self.view.get_instruction(ctx.outer_index)
        if outer is None or len(outer.accounts) < 8:
            raise DecodeError("initialize instruction for pool create event not found")

        return MemeEvent(
            type=EventType.CREATE,
            protocol=self.protocol.value,
            user=event.creator,
            creator=event.creator,
            base_mint=outer.accounts[6],
            quote_mint=outer.accounts[7],
            name=event.base_mint_param.name,
            symbol=event.base_mint_param.symbol,
            uri=event.base_mint_param.uri,
            decimals=event.base_mint_param.decimals,
            platform_config=outer.accounts[3],
            pool=event.pool_state,
            bonding_curve=event.pool_state,
        )

    def _decode_migrate_to_amm(self, data: bytes, ctx: InstructionContext) -> MemeEvent:
        # 1: base_mint, 2: quote_mint, 13: amm pool, 16: lp_mint
        return MemeEvent(
            type=EventType.MIGRATE,
            protocol=self.protocol.value,
            user=ctx.signer,
            base_mint=ctx.account(1),
            quote_mint=ctx.account(2),
            pool=ctx.account(13),
            pool_dex=DexPrograms.RAYDIUM_V4.name,
        )

    def _decode_migrate_to_cpswap(self, data: bytes, ctx: InstructionContext) -> MemeEvent:
        # 1: base_mint, 2: quote_mint, 5: cpswap pool, 7: lp_mint
        return MemeEvent(
            type=EventType.MIGRATE,
            protocol=self.protocol.value,
            user=ctx.signer,
            base_mint=ctx.account(1),
            quote_mint=ctx.account(2),
            pool=ctx.account(5),
            pool_dex=DexPrograms.RAYDIUM_CPMM.name,
        )

    ROUTES = (
        EventRoute(
            EventType.SWAP,
            (
                RaydiumLaunchpadDiscriminators.BUY_EXACT_IN,
                RaydiumLaunchpadDiscriminators.BUY_EXACT_OUT,
                RaydiumLaunchpadDiscriminators.SELL_EXACT_IN,
                RaydiumLaunchpadDiscriminators.SELL_EXACT_OUT,
            ),
            0,
            _decode_trade,
        ),
        EventRoute(EventType.CREATE, (RaydiumLaunchpadDiscriminators.CREATE_EVENT,), _EVENT_PREFIX, _decode_create),
        EventRoute(EventType.MIGRATE, (RaydiumLaunchpadDiscriminators.MIGRATE_TO_AMM,), 8, _decode_migrate_to_amm),
        EventRoute(EventType.MIGRATE, (RaydiumLaunchpadDiscriminators.MIGRATE_TO_CPSWAP,), 8, _decode_migrate_to_cpswap),
    )

"""
Boop.fun implementation of EventParser.

Boop.fun emits no trade log. Buy/sell instructions carry one amount (SOL for
buy, tokens for sell); the other leg is recovered from the transfers the
instruction caused.

Buy/sell accounts: 0: mint, 1: bonding_curve, ..., 6: user
Graduate accounts: 0: mint, ..., 7: bonding_curve, ..., 10: user
"""

from meme_decoder.core.binary_reader import BinaryReader
from meme_decoder.core.discriminators import BoopfunDiscriminators
from meme_decoder.core.pubkeys import SOL_DECIMALS, SOL_MINT, DexPrograms
from meme_decoder.errors import MissingTransferError
from meme_decoder.interfaces.decoder import EventParser, EventRoute, InstructionContext
from meme_decoder.interfaces.models import EventType, MemeEvent, Protocol, TokenInfo

BOOP_TOKEN_DECIMALS = 6
BOOP_TOTAL_SUPPLY = 1_000_000_000 * 10**BOOP_TOKEN_DECIMALS


class BoopfunEventParser(EventParser):
    """Boop.fun create / buy / sell / graduate."""

    protocol = Protocol.BOOP_FUN
    program_ids = (DexPrograms.BOOP_FUN.id,)
    default_amm = DexPrograms.BOOP_FUN.name

    def _decode_create(self, data: bytes, ctx: InstructionContext) -> MemeEvent:
        reader = BinaryReader(data)
        reader.read_u64()  # salt
        name = reader.read_string()
        symbol = reader.read_string()
        uri = reader.read_string()
        mint = ctx.account(2)
        user = ctx.account(3)

        event = MemeEvent(
            type=EventType.CREATE,
            protocol=self.protocol.value,
            user=user,
            creator=user,
            base_mint=mint,
            quote_mint=SOL_MINT,
            name=name,
            symbol=symbol,
            uri=uri,
            decimals=BOOP_TOKEN_DECIMALS,
            total_supply=BOOP_TOTAL_SUPPLY,
        )

        # curve accounts live on the deploy instruction sent alongside create
        deploy = self.classifier.get_instruction_by_discriminator(BoopfunDiscriminators.DEPLOY)
        if deploy is not None and len(deploy.accounts) > 5:
            event.bonding_curve = deploy.accounts[2]
            event.platform_config = deploy.accounts[5]
        return event

    def _decode_buy(self, data: bytes, ctx: InstructionContext) -> MemeEvent:
        reader = BinaryReader(data)
        sol_amount = reader.read_u64()
        mint = ctx.account(0)

        token_transfer = next((t for t in ctx.transfers if t.mint == mint), None)
        if token_transfer is None:
            raise MissingTransferError(f"buy without a transfer of {mint}")

        return MemeEvent(
            type=EventType.BUY,
            protocol=self.protocol.value,
            user=ctx.account(6),
            base_mint=mint,
            quote_mint=SOL_MINT,
            input_token=TokenInfo.from_raw(SOL_MINT, sol_amount, SOL_DECIMALS),
            output_token=TokenInfo.from_raw(mint, token_transfer.raw_amount, token_transfer.decimals),
            bonding_curve=ctx.account(1),
        )

    def _decode_sell(self, data: bytes, ctx: InstructionContext) -> MemeEvent:
        reader = BinaryReader(data)
        token_amount = reader.read_u64()
        mint = ctx.account(0)

        sol_transfer = next((t for t in ctx.transfers if t.mint == SOL_MINT), None)
        if sol_transfer is None:
            raise MissingTransferError("sell without a SOL transfer")
        token_decimals = self.view.get_token_decimals(mint, default=BOOP_TOKEN_DECIMALS)

        return MemeEvent(
            type=EventType.SELL,
            protocol=self.protocol.value,
            user=ctx.account(6),
            base_mint=mint,
            quote_mint=SOL_MINT,
            input_token=TokenInfo.from_raw(mint, token_amount, token_decimals),
            output_token=TokenInfo.from_raw(SOL_MINT, sol_transfer.raw_amount, SOL_DECIMALS),
            bonding_curve=ctx.account(1),
        )

    def _decode_complete(self, data: bytes, ctx: InstructionContext) -> MemeEvent:
        # largest SOL movement is the liquidity, the next one the graduation fee
        sols = sorted(
            (t for t in ctx.transfers if t.mint == SOL_MINT),
            key=lambda t: t.ui_amount,
            reverse=True,
        )
        if not sols:
            raise MissingTransferError("graduate without SOL transfers")

        return MemeEvent(
            type=EventType.COMPLETE,
            protocol=self.protocol.value,
            user=ctx.account(10),
            base_mint=ctx.account(0),
            quote_mint=SOL_MINT,
            bonding_curve=ctx.account(7),
            pool_b_reserve=sols[0].raw_amount,
            fee=sols[1].raw_amount if len(sols) > 1 else None,
        )

    ROUTES = (
        EventRoute(EventType.CREATE, (BoopfunDiscriminators.CREATE,), 8, _decode_create),
        EventRoute(EventType.BUY, (BoopfunDiscriminators.BUY,), 8, _decode_buy),
        EventRoute(EventType.SELL, (BoopfunDiscriminators.SELL,), 8, _decode_sell),
        EventRoute(EventType.COMPLETE, (BoopfunDiscriminators.COMPLETE,), 8, _decode_complete),
    )

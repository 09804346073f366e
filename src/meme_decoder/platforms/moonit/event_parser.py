"""
Moonit implementation of EventParser.

Trade accounts:
0: sender, 1: sender_token_account, 2: curve_account, 3: curve_token_account,
4: dex_fee, 5: helio_fee, 6: mint, 7: config_account, ...

Sell instructions only carry limits. Executed amounts are reconstructed from
the pre/post balance snapshots of the signer and the two fee recipients.
"""

from meme_decoder.core.binary_reader import BinaryReader
from meme_decoder.core.discriminators import MoonitDiscriminators
from meme_decoder.core.pubkeys import SOL_DECIMALS, SOL_MINT, USDC_MINT, USDT_MINT, DexPrograms
from meme_decoder.core.trade_synthesizer import process_meme_transfer_data
from meme_decoder.errors import BalanceNotFoundError
from meme_decoder.interfaces.decoder import EventParser, EventRoute, InstructionContext
from meme_decoder.interfaces.models import EventType, MemeEvent, Protocol, TokenInfo
from meme_decoder.utils.logger import get_logger

logger = get_logger(__name__)

MOONIT_TOKEN_DECIMALS = 9


class MoonitEventParser(EventParser):
    """Moonit buy / sell / token mint / migration."""

    protocol = Protocol.MOONIT
    program_ids = (DexPrograms.MOONIT.id,)
    default_amm = DexPrograms.MOONIT.name

    @staticmethod
    def _collateral_mint(ctx: InstructionContext) -> str:
        """USDC/USDT when the instruction references one of them, otherwise SOL."""
        for mint in (USDC_MINT, USDT_MINT):
            if mint in ctx.accounts:
                return mint
        return SOL_MINT

    def _decode_buy(self, data: bytes, ctx: InstructionContext) -> MemeEvent:
        reader = BinaryReader(data)
        token_amount = reader.read_u64()
        collateral_amount = reader.read_u64()

        mint = ctx.account(6)
        collateral = self._collateral_mint(ctx)
        event = MemeEvent(
            type=EventType.BUY,
            protocol=self.protocol.value,
            user=ctx.account(0),
            base_mint=mint,
            quote_mint=collateral,
            input_token=TokenInfo.from_raw(
                collateral, collateral_amount, self.view.get_token_decimals(collateral, default=SOL_DECIMALS)
            ),
            output_token=TokenInfo.from_raw(
                mint, token_amount, self.view.get_token_decimals(mint, default=MOONIT_TOKEN_DECIMALS)
            ),
            platform_config=ctx.account(7),
            pool=ctx.account(2),
            bonding_curve=ctx.account(2),
        )
        return process_meme_transfer_data(
            self.view, ctx.transfers, event, mint, False, 0, self.dex_info
        )

    def _decode_sell(self, data: bytes, ctx: InstructionContext) -> MemeEvent:
        user = ctx.account(0)
        mint = ctx.account(6)
        dex_fee_account = ctx.account(4)
        helio_fee_account = ctx.account(5)
        collateral = self._collateral_mint(ctx)

        token_change = self.view.get_token_balance_change(user, mint)
        if token_change is None:
            raise BalanceNotFoundError(f"no {mint} balance for seller {user}")
        collateral_amount, collateral_decimals = self._collateral_change(user, collateral, required=True)
        dex_fee, _ = self._collateral_change(dex_fee_account, collateral, required=False)
        helio_fee, _ = self._collateral_change(helio_fee_account, collateral, required=False)

        return MemeEvent(
            type=EventType.SELL,
            protocol=self.protocol.value,
            user=user,
            base_mint=mint,
            quote_mint=collateral,
            input_token=TokenInfo.from_raw(mint, abs(token_change.change), token_change.decimals),
            output_token=TokenInfo.from_raw(collateral, collateral_amount, collateral_decimals),
            protocol_fee=dex_fee,
            platform_fee=helio_fee,
            fee_recipient=dex_fee_account,
            platform_config=ctx.account(7),
            pool=ctx.account(2),
            bonding_curve=ctx.account(2),
        )

    def _collateral_change(self, owner: str, collateral: str, required: bool) -> tuple[int, int]:
        """Absolute change of ``owner``'s collateral holdings and its decimals."""
        if collateral == SOL_MINT:
            change = self.view.get_sol_balance_change(owner)
            decimals = SOL_DECIMALS
        else:
            change = self.view.get_token_balance_change(owner, collateral)
            decimals = change.decimals if change else self.view.get_token_decimals(collateral, default=6)
        if change is None:
            if required:
                raise BalanceNotFoundError(f"no {collateral} balance for {owner}")
            logger.debug(f"[MOONIT] no {collateral} balance for fee account {owner}")
            return 0, decimals
        return abs(change.change), decimals

    def _decode_create(self, data: bytes, ctx: InstructionContext) -> MemeEvent:
        reader = BinaryReader(data)
        name = reader.read_string()
        symbol = reader.read_string()
        uri = reader.read_string()
        decimals = reader.read_u8()
        reader.read_u8()  # collateral_currency
        total_supply = reader.read_u64()

        return MemeEvent(
            type=EventType.CREATE,
            protocol=self.protocol.value,
            user=ctx.account(0),
            creator=ctx.account(0),
            base_mint=ctx.account(3),
            quote_mint=SOL_MINT,
            name=name,
            symbol=symbol,
            uri=uri,
            decimals=decimals,
            total_supply=total_supply,
            pool=ctx.account(2),
            bonding_curve=ctx.account(2),
        )

    def _decode_migrate(self, data: bytes, ctx: InstructionContext) -> MemeEvent:
        # 2: curve_account, 5: mint
        return MemeEvent(
            type=EventType.MIGRATE,
            protocol=self.protocol.value,
            user=ctx.signer,
            base_mint=ctx.account(5),
            quote_mint=SOL_MINT,
            bonding_curve=ctx.account(2),
        )

    ROUTES = (
        EventRoute(EventType.BUY, (MoonitDiscriminators.BUY,), 8, _decode_buy),
        EventRoute(EventType.SELL, (MoonitDiscriminators.SELL,), 8, _decode_sell),
        EventRoute(EventType.CREATE, (MoonitDiscriminators.CREATE,), 8, _decode_create),
        EventRoute(EventType.MIGRATE, (MoonitDiscriminators.MIGRATE,), 8, _decode_migrate),
    )

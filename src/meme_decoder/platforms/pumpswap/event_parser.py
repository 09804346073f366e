"""
PumpSwap implementation of EventParser.

Buy/Sell events are self-CPI logs. Pool mints are not part of the event, they
come from the swap instruction that emitted it:
0: pool, 1: user, 2: global_config, 3: base_mint, 4: quote_mint, ...
"""

from meme_decoder.core.binary_reader import BinaryReader
from meme_decoder.core.discriminators import PumpswapDiscriminators
from meme_decoder.core.ordering import get_prev_instruction_by_index
from meme_decoder.core.pubkeys import DexPrograms
from meme_decoder.errors import DecodeError
from meme_decoder.interfaces.decoder import EventParser, EventRoute, InstructionContext
from meme_decoder.interfaces.models import EventType, MemeEvent, Protocol, TokenInfo

# coin_creator (32) + coin_creator_fee_basis_points (8) + coin_creator_fee (8)
COIN_CREATOR_SIZE = 48


class PumpswapEventParser(EventParser):
    """PumpSwap buy/sell events with protocol and coin-creator fees."""

    protocol = Protocol.PUMP_SWAP
    program_ids = (DexPrograms.PUMP_SWAP.id,)
    default_amm = DexPrograms.PUMP_SWAP.name

    def _pool_mints(self, ctx: InstructionContext) -> tuple[str, str]:
        prev = get_prev_instruction_by_index(self.instructions, ctx.outer_index, ctx.inner_index)
        if prev is None or len(prev.accounts) < 5:
            raise DecodeError("swap instruction for event not found")
        return prev.accounts[3], prev.accounts[4]

    def _decode_swap_event(self, data: bytes, ctx: InstructionContext, is_buy: bool) -> MemeEvent:
        reader = BinaryReader(data)
        reader.read_i64()  # timestamp
        base_amount = reader.read_u64()  # base_amount_out / base_amount_in
        reader.read_u64()  # max_quote_amount_in / min_quote_amount_out
        reader.read_u64()  # user_base_token_reserves
        reader.read_u64()  # user_quote_token_reserves
        pool_base_reserves = reader.read_u64()
        pool_quote_reserves = reader.read_u64()
        reader.read_u64()  # quote_amount_in / quote_amount_out
        reader.read_u64()  # lp_fee_basis_points
        reader.read_u64()  # lp_fee
        reader.read_u64()  # protocol_fee_basis_points
        protocol_fee = reader.read_u64()
        reader.read_u64()  # quote_amount_in_with_lp_fee / quote_amount_out_without_lp_fee
        user_quote_amount = reader.read_u64()
        pool = reader.read_pubkey()
        user = reader.read_pubkey()
        reader.read_pubkey()  # user_base_token_account
        reader.read_pubkey()  # user_quote_token_account
        protocol_fee_recipient = reader.read_pubkey()
        reader.read_pubkey()  # protocol_fee_recipient_token_account

        base_mint, quote_mint = self._pool_mints(ctx)
        base = TokenInfo.unresolved(base_mint, base_amount)
        quote = TokenInfo.unresolved(quote_mint, user_quote_amount)

        event = MemeEvent(
            type=EventType.BUY if is_buy else EventType.SELL,
            protocol=self.protocol.value,
            user=user,
            base_mint=base_mint,
            quote_mint=quote_mint,
            input_token=quote if is_buy else base,
            output_token=base if is_buy else quote,
            protocol_fee=protocol_fee,
            fee_recipient=protocol_fee_recipient,
            pool=pool,
            pool_a_reserve=pool_base_reserves,
            pool_b_reserve=pool_quote_reserves,
        )
        if reader.remaining() >= COIN_CREATOR_SIZE:
            event.creator = reader.read_pubkey()
            reader.read_u64()  # coin_creator_fee_basis_points
            event.creator_fee = reader.read_u64()
        return event

    def _decode_buy(self, data: bytes, ctx: InstructionContext) -> MemeEvent:
        return self._decode_swap_event(data, ctx, is_buy=True)

    def _decode_sell(self, data: bytes, ctx: InstructionContext) -> MemeEvent:
        return self._decode_swap_event(data, ctx, is_buy=False)

    ROUTES = (
        EventRoute(EventType.BUY, (PumpswapDiscriminators.BUY_EVENT,), 16, _decode_buy),
        EventRoute(EventType.SELL, (PumpswapDiscriminators.SELL_EVENT,), 16, _decode_sell),
    )

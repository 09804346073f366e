"""
Pump.fun implementation of EventParser.

Events are self-CPI instructions: 8-byte Anchor event tag + 8-byte event
discriminator, followed by the Borsh-serialized event.
"""

from meme_decoder.core.binary_reader import BinaryReader
from meme_decoder.core.discriminators import PumpfunDiscriminators
from meme_decoder.core.ordering import get_prev_instruction_by_index
from meme_decoder.core.pubkeys import SOL_DECIMALS, SOL_MINT, DexPrograms
from meme_decoder.interfaces.decoder import EventParser, EventRoute, InstructionContext
from meme_decoder.interfaces.models import EventType, MemeEvent, Protocol, TokenInfo

PUMP_TOKEN_DECIMALS = 6
PUMP_TOTAL_SUPPLY = 1_000_000_000 * 10**PUMP_TOKEN_DECIMALS

# real reserves (16) + fee_recipient (32) + fee_bps (2), fee (8) + creator (32) + creator_fee_bps (2), creator_fee (8)
TRADE_EXTENSION_MIN = 52
# same block with u64 basis points
TRADE_EXTENSION_WIDE = 112
# creator (32) + timestamp (8)
CREATE_CREATOR_SIZE = 40
# virtual/real token reserves, virtual sol reserves, token total supply
CREATE_RESERVES_SIZE = 32


class PumpfunEventParser(EventParser):
    """Pump.fun bonding curve events."""

    protocol = Protocol.PUMP_FUN
    program_ids = (DexPrograms.PUMP_FUN.id,)
    default_amm = DexPrograms.PUMP_FUN.name

    def _decode_trade(self, data: bytes, ctx: InstructionContext) -> MemeEvent:
        reader = BinaryReader(data)
        mint = reader.read_pubkey()
        sol_amount = reader.read_u64()
        token_amount = reader.read_u64()
        is_buy = reader.read_bool()
        user = reader.read_pubkey()
        reader.read_i64()  # event timestamp, block time is used instead
        virtual_sol_reserves = reader.read_u64()
        virtual_token_reserves = reader.read_u64()

        event = MemeEvent(
            type=EventType.BUY if is_buy else EventType.SELL,
            protocol=self.protocol.value,
            user=user,
            base_mint=mint,
            quote_mint=SOL_MINT,
            pool_a_reserve=virtual_token_reserves,
            pool_b_reserve=virtual_sol_reserves,
        )

        sol = TokenInfo.from_raw(SOL_MINT, sol_amount, SOL_DECIMALS)
        token = TokenInfo.from_raw(mint, token_amount, PUMP_TOKEN_DECIMALS)
        event.input_token, event.output_token = (sol, token) if is_buy else (token, sol)

        # newer program versions append reserves and fee fields
        if reader.remaining() >= TRADE_EXTENSION_MIN:
            read_bps = reader.read_u64 if reader.remaining() >= TRADE_EXTENSION_WIDE else reader.read_u16
            reader.read_u64()  # real_sol_reserves
            reader.read_u64()  # real_token_reserves
            event.fee_recipient = reader.read_pubkey()
            read_bps()  # fee_basis_points
            event.protocol_fee = reader.read_u64()
            event.creator = reader.read_pubkey()
            read_bps()  # creator_fee_basis_points
            event.creator_fee = reader.read_u64()

        # the trade instruction precedes its event; account 3 is the bonding curve
        prev = get_prev_instruction_by_index(self.instructions, ctx.outer_index, ctx.inner_index)
        if prev is not None and len(prev.accounts) > 3:
            event.bonding_curve = prev.accounts[3]
            event.pool = prev.accounts[3]
        return event

    def _decode_create(self, data: bytes, ctx: InstructionContext) -> MemeEvent:
        reader = BinaryReader(data)
        name = reader.read_string()
        symbol = reader.read_string()
        uri = reader.read_string()
        mint = reader.read_pubkey()
        bonding_curve = reader.read_pubkey()
        user = reader.read_pubkey()

        event = MemeEvent(
            type=EventType.CREATE,
            protocol=self.protocol.value,
            user=user,
            base_mint=mint,
            quote_mint=SOL_MINT,
            name=name,
            symbol=symbol,
            uri=uri,
            decimals=PUMP_TOKEN_DECIMALS,
            total_supply=PUMP_TOTAL_SUPPLY,
            bonding_curve=bonding_curve,
            pool=bonding_curve,
            creator=user,
        )

        if reader.remaining() >= CREATE_CREATOR_SIZE:
            event.creator = reader.read_pubkey()
            reader.read_i64()  # timestamp
        if reader.remaining() >= CREATE_RESERVES_SIZE:
            event.pool_a_reserve = reader.read_u64()  # virtual_token_reserves
            event.pool_b_reserve = reader.read_u64()  # virtual_sol_reserves
            reader.read_u64()  # real_token_reserves
            event.total_supply = reader.read_u64()
        return event

    def _decode_complete(self, data: bytes, ctx: InstructionContext) -> MemeEvent:
        reader = BinaryReader(data)
        user = reader.read_pubkey()
        mint = reader.read_pubkey()
        bonding_curve = reader.read_pubkey()
        reader.read_i64()  # timestamp

        return MemeEvent(
            type=EventType.COMPLETE,
            protocol=self.protocol.value,
            user=user,
            base_mint=mint,
            quote_mint=SOL_MINT,
            bonding_curve=bonding_curve,
        )

    def _decode_migrate(self, data: bytes, ctx: InstructionContext) -> MemeEvent:
        reader = BinaryReader(data)
        user = reader.read_pubkey()
        mint = reader.read_pubkey()
        mint_amount = reader.read_u64()
        sol_amount = reader.read_u64()
        pool_migration_fee = reader.read_u64()
        bonding_curve = reader.read_pubkey()
        reader.read_i64()  # timestamp
        pool = reader.read_pubkey()

        return MemeEvent(
            type=EventType.MIGRATE,
            protocol=self.protocol.value,
            user=user,
            base_mint=mint,
            quote_mint=SOL_MINT,
            bonding_curve=bonding_curve,
            pool=pool,
            pool_dex=DexPrograms.PUMP_SWAP.name,
            pool_a_reserve=mint_amount,
            pool_b_reserve=sol_amount,
            fee=pool_migration_fee,
        )

    ROUTES = (
        EventRoute(EventType.BUY, (PumpfunDiscriminators.TRADE_EVENT,), 16, _decode_trade),
        EventRoute(EventType.CREATE, (PumpfunDiscriminators.CREATE_EVENT,), 16, _decode_create),
        EventRoute(EventType.COMPLETE, (PumpfunDiscriminators.COMPLETE_EVENT,), 16, _decode_complete),
        EventRoute(EventType.MIGRATE, (PumpfunDiscriminators.MIGRATE_EVENT,), 16, _decode_migrate),
    )

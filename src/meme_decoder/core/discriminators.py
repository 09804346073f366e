"""
Instruction and event discriminators.

Anchor programs prefix instruction data with sha256("global:<name>")[:8] and
emit self-CPI events as ANCHOR_EVENT_TAG + sha256("event:<Name>")[:8].
"""

import hashlib

# Self-CPI log wrapper shared by every Anchor program
ANCHOR_EVENT_TAG = bytes.fromhex("e445a52e51cb9a1d")


def compute_instruction_discriminator(instruction_name: str) -> bytes:
    """8-byte Anchor instruction discriminator for a snake_case name."""
    return hashlib.sha256(f"global:{instruction_name}".encode()).digest()[:8]


def compute_event_discriminator(event_name: str) -> bytes:
    """8-byte Anchor event discriminator for a CamelCase event name."""
    return hashlib.sha256(f"event:{event_name}".encode()).digest()[:8]


def compute_cpi_event_discriminator(event_name: str) -> bytes:
    """16-byte discriminator of an event emitted through self-CPI."""
    return ANCHOR_EVENT_TAG + compute_event_discriminator(event_name)


_ix = compute_instruction_discriminator
_evt = compute_cpi_event_discriminator


class PumpfunDiscriminators:
    TRADE_EVENT = _evt("TradeEvent")
    CREATE_EVENT = _evt("CreateEvent")
    COMPLETE_EVENT = _evt("CompleteEvent")
    MIGRATE_EVENT = _evt("CompletePumpAmmMigrationEvent")


class PumpswapDiscriminators:
    BUY_EVENT = _evt("BuyEvent")
    SELL_EVENT = _evt("SellEvent")


class BoopfunDiscriminators:
    CREATE = _ix("create_token")
    DEPLOY = _ix("deploy_bonding_curve")
    BUY = _ix("buy_token")
    SELL = _ix("sell_token")
    COMPLETE = _ix("graduate")


class MeteoraDBCDiscriminators:
    SWAP = _ix("swap")
    SWAP2 = _ix("swap2")
    INITIALIZE_VIRTUAL_POOL_WITH_SPL_TOKEN = _ix("initialize_virtual_pool_with_spl_token")
    INITIALIZE_VIRTUAL_POOL_WITH_TOKEN2022 = _ix("initialize_virtual_pool_with_token2022")
    METEORA_DBC_MIGRATE_DAMM = _ix("migrate_meteora_damm")
    METEORA_DBC_MIGRATE_DAMM_V2 = _ix("migration_damm_v2")


class MoonitDiscriminators:
    BUY = _ix("buy")
    SELL = _ix("sell")
    CREATE = _ix("token_mint")
    MIGRATE = _ix("migrate_funds")


class RaydiumLaunchpadDiscriminators:
    BUY_EXACT_IN = _ix("buy_exact_in")
    BUY_EXACT_OUT = _ix("buy_exact_out")
    SELL_EXACT_IN = _ix("sell_exact_in")
    SELL_EXACT_OUT = _ix("sell_exact_out")
    MIGRATE_TO_AMM = _ix("migrate_to_amm")
    MIGRATE_TO_CPSWAP = _ix("migrate_to_cpswap")

    CREATE_EVENT = _evt("PoolCreateEvent")
    TRADE_EVENT = _evt("TradeEvent")


class SugarDiscriminators:
    BUY_EXACT_IN = _ix("buy_exact_in")
    BUY_EXACT_OUT = _ix("buy_exact_out")
    BUY_MAX_OUT = _ix("buy_max_out")
    SELL_EXACT_IN = _ix("sell_exact_in")
    SELL_EXACT_OUT = _ix("sell_exact_out")
    CREATE = _ix("create_token")
    MIGRATE = _ix("migrate_to_raydium")


class HeavenDiscriminators:
    BUY = _ix("buy")
    SELL = _ix("sell")
    CREATE_POOL = _ix("create_standard_liquidity_pool")


class MetaplexDiscriminators:
    # CreateV1, plain 1-byte instruction tag
    CREATE_V1 = bytes([42])


# ============================================================================
# LIQUIDITY INSTRUCTIONS OF POOL DEXES
# Anything under these programs that is not listed here and moves two or more
# tokens is treated as a swap.
# ============================================================================

RAYDIUM_V4_LIQUIDITY = (bytes([1]), bytes([3]), bytes([4]))

RAYDIUM_CL_LIQUIDITY = tuple(_ix(name) for name in (
    "create_pool",
    "open_position",
    "open_position_v2",
    "open_position_with_token22_nft",
    "increase_liquidity",
    "increase_liquidity_v2",
    "decrease_liquidity",
    "decrease_liquidity_v2",
))

RAYDIUM_CPMM_LIQUIDITY = tuple(_ix(name) for name in (
    "initialize",
    "deposit",
    "withdraw",
))

METEORA_DLMM_LIQUIDITY = tuple(_ix(name) for name in (
    "initialize_lb_pair",
    "initialize_permission_lb_pair",
    "initialize_customizable_permissionless_lb_pair",
    "add_liquidity",
    "add_liquidity_by_weight",
    "add_liquidity_by_strategy",
    "add_liquidity_by_strategy_one_side",
    "add_liquidity_one_side",
    "add_liquidity_one_side_precise",
    "remove_liquidity",
    "remove_liquidity_by_range",
    "remove_all_liquidity",
    "claim_fee",
))

METEORA_DAMM_LIQUIDITY = tuple(_ix(name) for name in (
    "initialize_permissionless_pool",
    "initialize_permissionless_constant_product_pool_with_config",
    "add_balance_liquidity",
    "add_imbalance_liquidity",
    "remove_balance_liquidity",
    "remove_liquidity_single_side",
    "bootstrap_liquidity",
))

METEORA_DAMM_V2_LIQUIDITY = tuple(_ix(name) for name in (
    "initialize_pool",
    "initialize_customizable_pool",
    "initialize_pool_with_dynamic_config",
    "add_liquidity",
    "remove_liquidity",
    "remove_all_liquidity",
    "claim_position_fee",
))

ORCA_LIQUIDITY = tuple(_ix(name) for name in (
    "initialize_pool",
    "initialize_pool_v2",
    "open_position",
    "open_position_with_metadata",
    "increase_liquidity",
    "increase_liquidity_v2",
    "decrease_liquidity",
    "decrease_liquidity_v2",
    "collect_fees",
))

ORCA_SWAP = _ix("swap")
ORCA_SWAP_V2 = _ix("swap_v2")

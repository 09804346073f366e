"""
Well-known Solana addresses: system programs, DEX programs, quote mints and
tip accounts.

Matching against transaction account keys is done on base58 strings; the
Pubkey forms are used where PDAs are derived.
"""

from dataclasses import dataclass
from typing import Final, NamedTuple

from solders.pubkey import Pubkey
from spl.token.constants import (
    ASSOCIATED_TOKEN_PROGRAM_ID,
    TOKEN_2022_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
)


@dataclass
class SystemAddresses:
    """System-level program addresses."""

    SYSTEM_PROGRAM: Final[Pubkey] = Pubkey.from_string("11111111111111111111111111111111")
    TOKEN_PROGRAM: Final[Pubkey] = TOKEN_PROGRAM_ID
    TOKEN_2022_PROGRAM: Final[Pubkey] = TOKEN_2022_PROGRAM_ID
    ASSOCIATED_TOKEN_PROGRAM: Final[Pubkey] = ASSOCIATED_TOKEN_PROGRAM_ID
    COMPUTE_BUDGET_PROGRAM: Final[Pubkey] = Pubkey.from_string(
        "ComputeBudget111111111111111111111111111111"
    )
    MEMO_PROGRAM: Final[Pubkey] = Pubkey.from_string(
        "MemoSq4gqABAXKb96qnH8TysNcWxMyWCqXgDLGmfcHr"
    )
    SOL_MINT: Final[Pubkey] = Pubkey.from_string(
        "So11111111111111111111111111111111111111112"
    )


SYSTEM_PROGRAM_ID = str(SystemAddresses.SYSTEM_PROGRAM)
TOKEN_PROGRAM = str(SystemAddresses.TOKEN_PROGRAM)
TOKEN_2022_PROGRAM = str(SystemAddresses.TOKEN_2022_PROGRAM)
ASSOCIATED_TOKEN_PROGRAM = str(SystemAddresses.ASSOCIATED_TOKEN_PROGRAM)
COMPUTE_BUDGET_PROGRAM = str(SystemAddresses.COMPUTE_BUDGET_PROGRAM)
MEMO_PROGRAM = str(SystemAddresses.MEMO_PROGRAM)

TOKEN_PROGRAMS = frozenset({TOKEN_PROGRAM, TOKEN_2022_PROGRAM})

# Programs whose instructions never identify a DEX
SYSTEM_PROGRAMS = frozenset({
    SYSTEM_PROGRAM_ID,
    TOKEN_PROGRAM,
    TOKEN_2022_PROGRAM,
    ASSOCIATED_TOKEN_PROGRAM,
    COMPUTE_BUDGET_PROGRAM,
    MEMO_PROGRAM,
    "Memo1UhkJRfHyvLMcVucJwxXeuD728EqVDDwQDxFMNo",
})

# Programs that CPI into DEXes but never carry trade data (pump fee program)
SKIP_PROGRAM_IDS = frozenset({
    "pfeeUxB6jkeY1Hxd7CsFCAjcbHA9rWtchMGdZ6VojVZ",
})

# ============================================================================
# QUOTE TOKENS
# ============================================================================

SOL_MINT = str(SystemAddresses.SOL_MINT)
USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
USDT_MINT = "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB"

TOKENS: dict[str, str] = {
    "SOL": SOL_MINT,
    "USDC": USDC_MINT,
    "USDT": USDT_MINT,
}
QUOTE_MINTS = frozenset(TOKENS.values())
SOL_DECIMALS = 9

# ============================================================================
# FEE / TIP ACCOUNTS
# ============================================================================

FEE_ACCOUNTS = frozenset({
    # Jito tip accounts
    "96gYZGLnJYVFmbjzopPSU6QiEV5fGqZNyN9nmNhvrZU5",
    "HFqU5x63VTqvQss8hp11i4wVV8bD44PvwucfZ2bU7gRe",
    "Cw8CFyM9FkoMi7K7Crf6HNQqf4uEMzpKw6QNghXLvLkY",
    "ADaUMid9yfUytqMBgopwjb2DTLSokTSzL1zt6iGPaS49",
    "DfXygSm4jCyNCybVYYK6DwvWqjKee8pbDmJGcLWNDXjh",
    "ADuUkR4vqLUMWXxW9gh6D6L8pMSawimctcNZ5pGwDcEt",
    "DttWaMuVvTiduZRnguLF7jNxTgiMBZ1hyAumKUiL2KRL",
    "3AVi9Tg9Uo68tJfuvoKvqKNWKkC5wPdSSdeBnizKZ6jT",
})

# ============================================================================
# DEX PROGRAMS
# ============================================================================


class DexProgram(NamedTuple):
    id: str
    name: str
    tags: tuple[str, ...]


class DexPrograms:
    JUPITER = DexProgram("JUP6LkbZbjS1jKKwapdHNy74zcZ3tLUZoi5QNyVTaV4", "Jupiter", ("route",))
    OKX_ROUTER = DexProgram("6m2CDdhRgxpH4WjvdzxAYbGxwdGUz5MziiL5jek2kBma", "OKX", ("route",))
    RAYDIUM_ROUTE = DexProgram("routeUGWgWzqBWFcrCfv8tritsqukccJPu3q5GPP3xS", "RaydiumRoute", ("route",))

    PUMP_FUN = DexProgram("6EF8rrecthR5Dkzon8Nwu78hRvfCKubJ14M5uBEwF6P", "Pumpfun", ("amm",))
    PUMP_SWAP = DexProgram("pAMMBay6oceH9fJKBRHGP5D4bD4sWpmSwMn52FMfXEA", "Pumpswap", ("amm",))
    BOOP_FUN = DexProgram("boop8hVGQGqehUK2iVEMEnMrL5RbjywRzHKBmBE7ry4", "Boopfun", ("amm",))
    METEORA_DBC = DexProgram("dbcij3LWUppWqq96dh6gJWwBifmcGfLSB5D4DuSMaqN", "MeteoraDBC", ("amm",))
    MOONIT = DexProgram("MoonCVVNZFSYkqNXP6bxHLPL6QQJiMagDL3qcqUQTrG", "Moonit", ("amm",))
    RAYDIUM_LCP = DexProgram("LanMV9sAd7wArD4vJFi2qDdfnVhFxYSUg6eADduJ3uj", "RaydiumLaunchpad", ("amm",))
    SUGAR = DexProgram("deus4Bvftd5QKcEkE5muQaWGWDoma8GrySvPFrBPjhS", "Sugar", ("amm",))
    HEAVEN = DexProgram("HEAVENoP2qxoeuF8Dj2oT1GHEnu49U5mJYkdeC8BAX2o", "Heaven", ("amm",))

    RAYDIUM_V4 = DexProgram("675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8", "RaydiumV4", ("amm",))
    RAYDIUM_AMM = DexProgram("5quBtoiQqxF9Jv6KYKctB59NT3gtJD2Y65kdnB1Uev3h", "RaydiumAMM", ("amm",))
    RAYDIUM_CL = DexProgram("CAMMCzo5YL8w4VFF8KVHrK22GGUsp5VTaW7grrKgrWqK", "RaydiumCL", ("amm",))
    RAYDIUM_CPMM = DexProgram("CPMMoo8L3F4NbTegBCKVNunggL7H1ZpdTHKxQB5qKP1C", "RaydiumCPMM", ("amm",))
    METEORA = DexProgram("LBUZKhRxPF3XUpBCjp4YzTKgLccjZhTSDM9YuVaPwxo", "MeteoraDLMM", ("amm",))
    METEORA_DAMM = DexProgram("Eo7WjKq67rjJQSZxS6z3YkapzY3eMj6Xy8X5EQVn5UG", "MeteoraDamm", ("amm",))
    METEORA_DAMM_V2 = DexProgram("cpamdpZCGKUy5JxQXB4dcpGPiikHawvSWAd6mEn1sGG", "MeteoraDammV2", ("amm",))
    METEORA_VAULT = DexProgram("24Uqj9JCLxUeoC3hGfh5W3s9FM9uCHDS2SG3LYwBpyTi", "MeteoraVault", ("vault",))
    ORCA = DexProgram("whirLbMiicVdio4qvUfM5KAg6Ct8VwpYzGff3uctyCc", "Orca", ("amm",))

    METAPLEX = DexProgram("metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s", "Metaplex", ("metadata",))

    @classmethod
    def all(cls) -> tuple[DexProgram, ...]:
        return tuple(v for v in vars(cls).values() if isinstance(v, DexProgram))


DEX_PROGRAM_IDS: dict[str, DexProgram] = {p.id: p for p in DexPrograms.all()}

ROUTE_PROGRAM_IDS = frozenset(p.id for p in DexPrograms.all() if "route" in p.tags)
AMM_PROGRAM_IDS = frozenset(p.id for p in DexPrograms.all() if "amm" in p.tags)


def get_program_name(program_id: str) -> str:
    program = DEX_PROGRAM_IDS.get(program_id)
    return program.name if program else "Unknown"

"""
AMM program constants

Wire-level values shared with the on-chain program. Deployment-specific
values (program id, seed namespaces) live in amm_client.config.ProgramConfig.
"""

from enum import IntEnum


class InstructionTag(IntEnum):
    """One-byte discriminator at offset 0 of every instruction payload"""
    INITIALIZE_POOL = 0
    ADD_LIQUIDITY = 1
    REMOVE_LIQUIDITY = 2
    SWAP = 3


# Program derived address rules
MAX_SEED_LEN = 32
MAX_SEEDS = 16  # bump included
MAX_BUMP = 255

# Fixed-width integer bounds
U16_MAX = 2 ** 16 - 1
U64_MAX = 2 ** 64 - 1

# Fee rates are integer basis points out of 10000
BPS_DENOMINATOR = 10_000

# Pool account layout (offsets in bytes)
POOL_IS_INITIALIZED_OFFSET = 0
POOL_BUMP_OFFSET = 1
POOL_TOKEN_A_MINT_OFFSET = 2
POOL_TOKEN_B_MINT_OFFSET = 34
POOL_LP_TOKEN_MINT_OFFSET = 66
POOL_AUTHORITY_OFFSET = 98
POOL_TOKEN_A_RESERVE_OFFSET = 130
POOL_TOKEN_B_RESERVE_OFFSET = 138
POOL_LP_TOKEN_SUPPLY_OFFSET = 146
POOL_FEE_RATE_OFFSET = 154
POOL_ACCOUNT_SIZE = 156

# SPL Token account layouts
MINT_DECIMALS_OFFSET = 44
MINT_ACCOUNT_SIZE = 82
TOKEN_ACCOUNT_AMOUNT_OFFSET = 64
TOKEN_ACCOUNT_SIZE = 165

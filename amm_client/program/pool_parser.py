"""
AMM Pool State Parser

Decodes pool, mint and token account data fetched over RPC.
"""

import logging
import struct
from typing import Optional

from solders.pubkey import Pubkey

from ..errors import AccountNotFound, InvalidAccountData, PoolStateError
from ..infra import RpcClient
from ..types import PoolInfo
from .constants import (
    MINT_ACCOUNT_SIZE,
    MINT_DECIMALS_OFFSET,
    POOL_ACCOUNT_SIZE,
    POOL_AUTHORITY_OFFSET,
    POOL_BUMP_OFFSET,
    POOL_FEE_RATE_OFFSET,
    POOL_IS_INITIALIZED_OFFSET,
    POOL_LP_TOKEN_MINT_OFFSET,
    POOL_LP_TOKEN_SUPPLY_OFFSET,
    POOL_TOKEN_A_MINT_OFFSET,
    POOL_TOKEN_A_RESERVE_OFFSET,
    POOL_TOKEN_B_MINT_OFFSET,
    POOL_TOKEN_B_RESERVE_OFFSET,
    TOKEN_ACCOUNT_AMOUNT_OFFSET,
    TOKEN_ACCOUNT_SIZE,
)

logger = logging.getLogger(__name__)


def _pubkey_at(data: bytes, offset: int) -> str:
    return str(Pubkey.from_bytes(data[offset:offset + 32]))


def parse_pool_state(pool_address: str, data: bytes) -> PoolInfo:
    """
    Parse AMM pool account

    Layout:
    - u8: is_initialized (offset 0)
    - u8: bump (offset 1)
    - publicKey(32): token_a_mint (offset 2)
    - publicKey(32): token_b_mint (offset 34)
    - publicKey(32): lp_token_mint (offset 66)
    - publicKey(32): authority (offset 98)
    - u64: token_a_reserve (offset 130)
    - u64: token_b_reserve (offset 138)
    - u64: lp_token_supply (offset 146)
    - u16: fee_rate in bps (offset 154)

    Args:
        pool_address: Pool address, for error context
        data: Raw account data

    Returns:
        PoolInfo snapshot

    Raises:
        PoolStateError: Data too short or pool not initialized
    """
    if len(data) < POOL_ACCOUNT_SIZE:
        raise PoolStateError.invalid_state(
            pool_address, f"expected at least {POOL_ACCOUNT_SIZE} bytes, got {len(data)}"
        )
    if data[POOL_IS_INITIALIZED_OFFSET] == 0:
        raise PoolStateError.invalid_state(pool_address, "pool is not initialized")

    return PoolInfo(
        address=pool_address,
        token_a_mint=_pubkey_at(data, POOL_TOKEN_A_MINT_OFFSET),
        token_b_mint=_pubkey_at(data, POOL_TOKEN_B_MINT_OFFSET),
        lp_token_mint=_pubkey_at(data, POOL_LP_TOKEN_MINT_OFFSET),
        authority=_pubkey_at(data, POOL_AUTHORITY_OFFSET),
        token_a_reserve=struct.unpack_from("<Q", data, POOL_TOKEN_A_RESERVE_OFFSET)[0],
        token_b_reserve=struct.unpack_from("<Q", data, POOL_TOKEN_B_RESERVE_OFFSET)[0],
        lp_token_supply=struct.unpack_from("<Q", data, POOL_LP_TOKEN_SUPPLY_OFFSET)[0],
        fee_rate=struct.unpack_from("<H", data, POOL_FEE_RATE_OFFSET)[0],
        bump=data[POOL_BUMP_OFFSET],
    )


def parse_mint_decimals(data: bytes, address: Optional[str] = None) -> int:
    """
    Decimals of an SPL mint account

    Raises:
        InvalidAccountData: Data shorter than a mint account
    """
    if len(data) < MINT_ACCOUNT_SIZE:
        raise InvalidAccountData.too_short("Mint", MINT_ACCOUNT_SIZE, len(data), address)
    return data[MINT_DECIMALS_OFFSET]


def parse_token_amount(data: bytes, address: Optional[str] = None) -> int:
    """
    Raw amount held by an SPL token account

    Raises:
        InvalidAccountData: Data shorter than a token account
    """
    if len(data) < TOKEN_ACCOUNT_SIZE:
        raise InvalidAccountData.too_short("Token", TOKEN_ACCOUNT_SIZE, len(data), address)
    return struct.unpack_from("<Q", data, TOKEN_ACCOUNT_AMOUNT_OFFSET)[0]


def fetch_account_data(rpc: RpcClient, address: str) -> Optional[bytes]:
    """
    Fetch raw account data

    Returns:
        Account bytes, or None if the account does not exist
    """
    account = rpc.get_account_info(address)
    return account.data if account is not None else None


def fetch_pool_state(rpc: RpcClient, pool_address: str) -> PoolInfo:
    """
    Fetch and parse a pool account

    Raises:
        AccountNotFound: Pool account does not exist
        PoolStateError: Account data cannot be decoded
        RpcError: Transport failure
    """
    data = fetch_account_data(rpc, pool_address)
    if data is None:
        raise AccountNotFound.pool(pool_address)

    pool = parse_pool_state(pool_address, data)
    logger.debug(f"Fetched pool {pool_address}: {pool.to_dict()}")
    return pool

"""
Program Derived Address helpers

Derives the pool, LP token mint and pool authority addresses the AMM
program expects, plus associated token accounts.
"""

import logging
from typing import Optional, Sequence

from solders.pubkey import Pubkey

from ..config import ProgramConfig
from ..errors import ConfigurationError, DerivationExhausted, InvalidMintPair
from ..types import AddressLike, DerivedAddress, PoolAddresses, to_pubkey
from .constants import MAX_BUMP, MAX_SEED_LEN, MAX_SEEDS

logger = logging.getLogger(__name__)


def create_program_address(seeds: Sequence[bytes], program_id: Pubkey) -> Optional[Pubkey]:
    """
    Program address for a full seed list (bump included)

    Returns:
        The address, or None when the seeds land on the curve
    """
    try:
        return Pubkey.create_program_address(list(seeds), program_id)
    except Exception:
        # solders raises PubkeyError, which it does not export
        return None


def derive(program_id: AddressLike, seeds: Sequence[bytes]) -> DerivedAddress:
    """
    Find the program address and canonical bump for a seed list

    Args:
        program_id: Owning program
        seeds: Ordered seed byte strings (bump excluded)

    Returns:
        DerivedAddress with the first bump (from 255 down) that is off-curve

    Raises:
        ConfigurationError: Seed longer than 32 bytes or too many seeds
        DerivationExhausted: All 256 bumps land on the curve
    """
    program = to_pubkey(program_id)
    seeds = [bytes(seed) for seed in seeds]

    if len(seeds) + 1 > MAX_SEEDS:
        raise ConfigurationError.invalid("seeds", f"at most {MAX_SEEDS - 1} seeds allowed, got {len(seeds)}")
    for seed in seeds:
        if len(seed) > MAX_SEED_LEN:
            raise ConfigurationError.invalid("seeds", f"seed exceeds {MAX_SEED_LEN} bytes: {len(seed)}")

    for bump in range(MAX_BUMP, -1, -1):
        address = create_program_address(seeds + [bytes([bump])], program)
        if address is not None:
            return DerivedAddress(address=address, bump=bump)

    raise DerivationExhausted(str(program), seeds)


def validate_mint_pair(token_a_mint: AddressLike, token_b_mint: AddressLike):
    """
    Normalize a pool mint pair

    Raises:
        InvalidMintPair: Both mints are the same
    """
    mint_a = to_pubkey(token_a_mint)
    mint_b = to_pubkey(token_b_mint)
    if mint_a == mint_b:
        raise InvalidMintPair(str(mint_a))
    return mint_a, mint_b


def get_associated_token_address(
    owner: AddressLike,
    mint: AddressLike,
    token_program: Optional[AddressLike] = None,
    program_config: Optional[ProgramConfig] = None,
) -> Pubkey:
    """
    Get associated token account address.

    Off-curve owners (e.g. the pool authority PDA) are allowed.

    Args:
        owner: Wallet or PDA owning the account
        mint: Token mint
        token_program: Token program (defaults to the configured token program)
        program_config: Supplies the associated token program id

    Returns:
        ATA address
    """
    program_config = program_config or ProgramConfig()
    if token_program is None:
        token_program = program_config.token_program_id

    seeds = [
        bytes(to_pubkey(owner)),
        bytes(to_pubkey(token_program)),
        bytes(to_pubkey(mint)),
    ]
    address, _ = Pubkey.find_program_address(seeds, to_pubkey(program_config.associated_token_program_id))
    return address


class PoolAddressDeriver:
    """
    Derives the program addresses of a pool for one AMM deployment

    Every pool PDA is seeded with `namespace || mint_a || mint_b`. Mint order
    matters: (A, B) and (B, A) are different pools, so callers must reuse the
    order the pool was created with.

    Usage:
        deriver = PoolAddressDeriver(ProgramConfig())
        pool, bump = deriver.pool_address(sol_mint, usdc_mint)
        addresses = deriver.derive_all(sol_mint, usdc_mint)
    """

    def __init__(self, program_config: Optional[ProgramConfig] = None):
        self._config = program_config or ProgramConfig()
        self._program_id = to_pubkey(self._config.program_id)

    @property
    def program_id(self) -> Pubkey:
        return self._program_id

    @property
    def program_config(self) -> ProgramConfig:
        return self._config

    def _derive(self, namespace: bytes, token_a_mint: AddressLike, token_b_mint: AddressLike) -> DerivedAddress:
        mint_a, mint_b = validate_mint_pair(token_a_mint, token_b_mint)
        derived = derive(self._program_id, [namespace, bytes(mint_a), bytes(mint_b)])
        logger.debug(
            f"Derived {namespace.decode(errors='replace')} PDA {derived.address} (bump {derived.bump}) "
            f"for {mint_a}/{mint_b}"
        )
        return derived

    def pool_address(self, token_a_mint: AddressLike, token_b_mint: AddressLike) -> DerivedAddress:
        """Pool state account"""
        return self._derive(self._config.pool_seed, token_a_mint, token_b_mint)

    def lp_token_mint_address(self, token_a_mint: AddressLike, token_b_mint: AddressLike) -> DerivedAddress:
        """LP token mint"""
        return self._derive(self._config.lp_token_seed, token_a_mint, token_b_mint)

    def pool_authority_address(self, token_a_mint: AddressLike, token_b_mint: AddressLike) -> DerivedAddress:
        """Authority that owns the pool token accounts and mints LP tokens"""
        return self._derive(self._config.authority_seed, token_a_mint, token_b_mint)

    def derive_all(self, token_a_mint: AddressLike, token_b_mint: AddressLike) -> PoolAddresses:
        """All three pool addresses for a mint pair"""
        validate_mint_pair(token_a_mint, token_b_mint)
        return PoolAddresses(
            pool=self.pool_address(token_a_mint, token_b_mint),
            lp_token_mint=self.lp_token_mint_address(token_a_mint, token_b_mint),
            authority=self.pool_authority_address(token_a_mint, token_b_mint),
        )

    def pool_token_account(self, token_a_mint: AddressLike, token_b_mint: AddressLike, mint: AddressLike) -> Pubkey:
        """Pool-side token account for one of the pool's mints"""
        authority = self.pool_authority_address(token_a_mint, token_b_mint).address
        return get_associated_token_address(authority, mint, program_config=self._config)

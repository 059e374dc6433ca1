"""
AmmClient - Entry point for the constant-product AMM program

Composes address derivation, instruction encoding and swap math into
ready-to-sign instructions and local previews. Nothing here signs or
submits a transaction; sequencing (e.g. "create ATA, then swap") is up to
the caller.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import List, Optional, Tuple, Union

from solders.instruction import Instruction
from solders.pubkey import Pubkey

from .config import ProgramConfig, config as global_config
from .errors import AccountNotFound, ConfigurationError
from .infra import RpcClient, RpcClientConfig
from .program.constants import BPS_DENOMINATOR
from .program.instructions import (
    build_add_liquidity_instruction,
    build_create_ata_idempotent_instruction,
    build_initialize_pool_instruction,
    build_remove_liquidity_instruction,
    build_swap_instruction,
)
from .program.math import (
    minimum_amount_out,
    quote_add_liquidity,
    quote_price_impact,
    quote_remove_liquidity,
    quote_swap,
    swap_fee,
)
from .program.pda import PoolAddressDeriver, get_associated_token_address, validate_mint_pair
from .program.pool_parser import (
    fetch_account_data,
    fetch_pool_state,
    parse_mint_decimals,
    parse_token_amount,
)
from .types import AddressLike, PoolAddresses, PoolInfo, SwapQuote, Token, to_pubkey

logger = logging.getLogger(__name__)


class AmmClient:
    """
    Client for the constant-product AMM program

    Provides:
    - Pool address derivation (pool, LP mint, authority)
    - Instruction builders: initialize pool, add/remove liquidity, swap
    - Pool and token reads over RPC
    - Swap previews (output, price impact, minimum out)

    Usage:
        client = AmmClient("https://api.devnet.solana.com")

        pool_address, bump = client.get_pool_address(sol_mint, usdc_mint)
        ix = client.create_swap_instruction(
            user, sol_mint, usdc_mint,
            amount_in=100_000, minimum_amount_out=9_000_000, a_to_b=True,
        )

        quote = client.preview_swap(sol_mint, usdc_mint, 100_000, a_to_b=True)

    Builders and math need no RPC; reads raise ConfigurationError when the
    client was created without an endpoint.
    """

    def __init__(
        self,
        rpc: Optional[Union[str, List[str], RpcClient]] = None,
        program_config: Optional[ProgramConfig] = None,
        rpc_config: Optional[RpcClientConfig] = None,
    ):
        """
        Initialize AmmClient

        Args:
            rpc: RpcClient, endpoint URL, or list of URLs for fallback.
                 Defaults to SOLANA_RPC_URL when set.
            program_config: AMM deployment (defaults to global config)
            rpc_config: Optional RPC configuration when a URL is given
        """
        self._program = program_config or global_config.program
        self._deriver = PoolAddressDeriver(self._program)

        if rpc is None and global_config.rpc.url:
            rpc = global_config.rpc.url

        if isinstance(rpc, RpcClient) or rpc is None:
            self._rpc = rpc
        else:
            self._rpc = RpcClient(rpc, config=rpc_config)

    @property
    def program_config(self) -> ProgramConfig:
        return self._program

    @property
    def program_id(self) -> Pubkey:
        return self._deriver.program_id

    @property
    def deriver(self) -> PoolAddressDeriver:
        return self._deriver

    @property
    def rpc(self) -> RpcClient:
        """Access to RPC client"""
        if self._rpc is None:
            raise ConfigurationError.missing("RPC endpoint (pass rpc= or set SOLANA_RPC_URL)")
        return self._rpc

    # ========== Addresses ==========

    def get_pool_address(self, token_a_mint: AddressLike, token_b_mint: AddressLike) -> Tuple[Pubkey, int]:
        """Pool PDA and bump"""
        derived = self._deriver.pool_address(token_a_mint, token_b_mint)
        return derived.address, derived.bump

    def get_lp_token_mint_address(self, token_a_mint: AddressLike, token_b_mint: AddressLike) -> Tuple[Pubkey, int]:
        """LP token mint PDA and bump"""
        derived = self._deriver.lp_token_mint_address(token_a_mint, token_b_mint)
        return derived.address, derived.bump

    def get_pool_authority_address(self, token_a_mint: AddressLike, token_b_mint: AddressLike) -> Tuple[Pubkey, int]:
        """Pool authority PDA and bump"""
        derived = self._deriver.pool_authority_address(token_a_mint, token_b_mint)
        return derived.address, derived.bump

    def get_pool_addresses(self, token_a_mint: AddressLike, token_b_mint: AddressLike) -> PoolAddresses:
        """All three pool PDAs"""
        return self._deriver.derive_all(token_a_mint, token_b_mint)

    def get_associated_token_address(self, owner: AddressLike, mint: AddressLike) -> Pubkey:
        """Associated token account of owner for mint (may not exist yet)"""
        return get_associated_token_address(owner, mint, program_config=self._program)

    # ========== Instruction Builders ==========

    def create_initialize_pool_instruction(
        self,
        initializer: AddressLike,
        token_a_mint: AddressLike,
        token_b_mint: AddressLike,
        fee_rate: Optional[int] = None,
    ) -> Instruction:
        """
        Build InitializePool instruction

        Args:
            initializer: Payer and signer
            token_a_mint: Mint A (order fixes the pool's identity)
            token_b_mint: Mint B
            fee_rate: Fee in basis points (default 30 = 0.3%)
        """
        if fee_rate is None:
            fee_rate = global_config.trading.default_fee_rate_bps
        if fee_rate < 0 or fee_rate > BPS_DENOMINATOR:
            raise ConfigurationError.invalid("fee_rate", f"must be in [0, {BPS_DENOMINATOR}] bps, got {fee_rate}")

        mint_a, mint_b = validate_mint_pair(token_a_mint, token_b_mint)
        addresses = self._deriver.derive_all(mint_a, mint_b)
        authority = addresses.authority.address

        logger.info(f"Building InitializePool for {mint_a}/{mint_b} at {addresses.pool.address} (fee {fee_rate} bps)")

        return build_initialize_pool_instruction(
            self._program,
            initializer=to_pubkey(initializer),
            pool=addresses.pool.address,
            token_a_mint=mint_a,
            token_b_mint=mint_b,
            lp_token_mint=addresses.lp_token_mint.address,
            pool_token_a=self.get_associated_token_address(authority, mint_a),
            pool_token_b=self.get_associated_token_address(authority, mint_b),
            pool_authority=authority,
            fee_rate=fee_rate,
        )

    def _liquidity_accounts(self, user: AddressLike, token_a_mint: AddressLike, token_b_mint: AddressLike) -> dict:
        mint_a, mint_b = validate_mint_pair(token_a_mint, token_b_mint)
        owner = to_pubkey(user)
        addresses = self._deriver.derive_all(mint_a, mint_b)
        authority = addresses.authority.address
        lp_mint = addresses.lp_token_mint.address

        return {
            "user": owner,
            "pool": addresses.pool.address,
            "pool_authority": authority,
            "user_token_a": self.get_associated_token_address(owner, mint_a),
            "user_token_b": self.get_associated_token_address(owner, mint_b),
            "pool_token_a": self.get_associated_token_address(authority, mint_a),
            "pool_token_b": self.get_associated_token_address(authority, mint_b),
            "lp_token_mint": lp_mint,
            "user_lp_token": self.get_associated_token_address(owner, lp_mint),
        }

    def create_add_liquidity_instruction(
        self,
        user: AddressLike,
        token_a_mint: AddressLike,
        token_b_mint: AddressLike,
        max_token_a: int,
        max_token_b: int,
        min_lp_tokens: int,
    ) -> Instruction:
        """
        Build AddLiquidity instruction

        The user's LP token account must exist when the transaction lands;
        see create_associated_token_account_instruction_if_needed.
        """
        accounts = self._liquidity_accounts(user, token_a_mint, token_b_mint)
        logger.info(
            f"Building AddLiquidity on {accounts['pool']}: max_a={max_token_a}, "
            f"max_b={max_token_b}, min_lp={min_lp_tokens}"
        )
        return build_add_liquidity_instruction(
            self._program,
            max_token_a=max_token_a,
            max_token_b=max_token_b,
            min_lp_tokens=min_lp_tokens,
            **accounts,
        )

    def create_remove_liquidity_instruction(
        self,
        user: AddressLike,
        token_a_mint: AddressLike,
        token_b_mint: AddressLike,
        lp_amount: int,
        min_token_a: int,
        min_token_b: int,
    ) -> Instruction:
        """Build RemoveLiquidity instruction"""
        accounts = self._liquidity_accounts(user, token_a_mint, token_b_mint)
        logger.info(
            f"Building RemoveLiquidity on {accounts['pool']}: lp={lp_amount}, "
            f"min_a={min_token_a}, min_b={min_token_b}"
        )
        return build_remove_liquidity_instruction(
            self._program,
            lp_amount=lp_amount,
            min_token_a=min_token_a,
            min_token_b=min_token_b,
            **accounts,
        )

    def create_swap_instruction(
        self,
        user: AddressLike,
        token_a_mint: AddressLike,
        token_b_mint: AddressLike,
        amount_in: int,
        minimum_amount_out: int,
        a_to_b: bool,
    ) -> Instruction:
        """
        Build Swap instruction

        Args:
            user: Signer owning the input/output token accounts
            token_a_mint: Pool mint A (pool creation order)
            token_b_mint: Pool mint B
            amount_in: Raw input amount
            minimum_amount_out: Program aborts if output would be lower
            a_to_b: True to sell token A for token B
        """
        mint_a, mint_b = validate_mint_pair(token_a_mint, token_b_mint)
        owner = to_pubkey(user)
        pool = self._deriver.pool_address(mint_a, mint_b).address
        authority = self._deriver.pool_authority_address(mint_a, mint_b).address

        input_mint, output_mint = (mint_a, mint_b) if a_to_b else (mint_b, mint_a)

        logger.info(
            f"Building Swap on {pool}: {input_mint} -> {output_mint}, "
            f"amount_in={amount_in}, min_out={minimum_amount_out}"
        )

        return build_swap_instruction(
            self._program,
            user=owner,
            pool=pool,
            pool_authority=authority,
            user_input_token=self.get_associated_token_address(owner, input_mint),
            user_output_token=self.get_associated_token_address(owner, output_mint),
            pool_input_token=self.get_associated_token_address(authority, input_mint),
            pool_output_token=self.get_associated_token_address(authority, output_mint),
            amount_in=amount_in,
            minimum_amount_out=minimum_amount_out,
            a_to_b=a_to_b,
        )

    def create_associated_token_account_instruction_if_needed(
        self,
        payer: AddressLike,
        owner: AddressLike,
        mint: AddressLike,
    ) -> Optional[Instruction]:
        """
        Build an ATA creation instruction when the account does not exist yet

        Returns:
            Instruction to prepend, or None if the account already exists
        """
        ata = self.get_associated_token_address(owner, mint)
        if fetch_account_data(self.rpc, str(ata)) is not None:
            return None

        logger.info(f"Associated token account {ata} missing, adding create instruction")
        return build_create_ata_idempotent_instruction(
            self._program,
            payer=to_pubkey(payer),
            ata_address=ata,
            owner=to_pubkey(owner),
            mint=to_pubkey(mint),
        )

    # ========== Reads ==========

    def get_pool_info(self, token_a_mint: AddressLike, token_b_mint: AddressLike) -> PoolInfo:
        """
        Fetch the pool snapshot for a mint pair

        Raises:
            AccountNotFound: Pool has not been initialized
            PoolStateError: Account data cannot be decoded
        """
        pool_address, _ = self.get_pool_address(token_a_mint, token_b_mint)
        return fetch_pool_state(self.rpc, str(pool_address))

    def get_token_account(self, owner: AddressLike, mint: AddressLike) -> Pubkey:
        """
        Associated token account of owner, checked to exist on chain

        Raises:
            AccountNotFound: Account not created yet
        """
        ata = self.get_associated_token_address(owner, mint)
        if fetch_account_data(self.rpc, str(ata)) is None:
            raise AccountNotFound.account(str(ata))
        return ata

    def get_token_balance(self, owner: AddressLike, mint: AddressLike) -> int:
        """Raw balance of owner's associated account (0 if it does not exist)"""
        ata = self.get_associated_token_address(owner, mint)
        data = fetch_account_data(self.rpc, str(ata))
        if data is None:
            return 0
        return parse_token_amount(data, str(ata))

    def get_token_info(
        self,
        mint: AddressLike,
        symbol: str = "UNKNOWN",
        name: str = "Unknown Token",
    ) -> Optional[Token]:
        """
        Token descriptor with on-chain decimals

        Symbol and name are not stored on the mint; pass them from a
        registry if known.

        Returns:
            Token, or None if the mint does not exist
        """
        mint_pubkey = to_pubkey(mint)
        data = fetch_account_data(self.rpc, str(mint_pubkey))
        if data is None:
            return None
        return Token(
            mint=str(mint_pubkey),
            symbol=symbol,
            decimals=parse_mint_decimals(data, str(mint_pubkey)),
            name=name,
        )

    # ========== Previews ==========

    @staticmethod
    def quote_swap(amount_in: int, reserve_in: int, reserve_out: int, fee_rate_bps: int) -> int:
        """Swap output for given reserves (see program.math.quote_swap)"""
        return quote_swap(amount_in, reserve_in, reserve_out, fee_rate_bps)

    @staticmethod
    def quote_price_impact(amount_in: int, reserve_in: int, reserve_out: int, fee_rate_bps: int) -> Decimal:
        """Price impact in percent (see program.math.quote_price_impact)"""
        return quote_price_impact(amount_in, reserve_in, reserve_out, fee_rate_bps)

    def preview_swap(
        self,
        token_a_mint: AddressLike,
        token_b_mint: AddressLike,
        amount_in: int,
        a_to_b: bool,
        slippage_bps: Optional[int] = None,
    ) -> SwapQuote:
        """
        Quote a swap against the live pool snapshot

        Args:
            token_a_mint: Pool mint A
            token_b_mint: Pool mint B
            amount_in: Raw input amount
            a_to_b: Swap direction
            slippage_bps: Tolerance for minimum_amount_out (default from config)

        Returns:
            SwapQuote; amount_out is 0 for a pool without liquidity
        """
        if slippage_bps is None:
            slippage_bps = global_config.trading.default_slippage_bps

        pool = self.get_pool_info(token_a_mint, token_b_mint)
        return self.quote_from_pool(pool, amount_in, a_to_b, slippage_bps)

    @staticmethod
    def quote_from_pool(pool: PoolInfo, amount_in: int, a_to_b: bool, slippage_bps: int = 0) -> SwapQuote:
        """Quote a swap against an already fetched pool snapshot"""
        reserve_in, reserve_out = pool.reserves(a_to_b)
        amount_out = quote_swap(amount_in, reserve_in, reserve_out, pool.fee_rate)
        impact = quote_price_impact(amount_in, reserve_in, reserve_out, pool.fee_rate, amount_out=amount_out)

        if not pool.has_liquidity:
            logger.info(f"Pool {pool.address} has no liquidity yet, quoting zero output")

        return SwapQuote(
            amount_in=amount_in,
            amount_out=amount_out,
            fee_amount=swap_fee(amount_in, pool.fee_rate),
            minimum_amount_out=minimum_amount_out(amount_out, slippage_bps),
            price_impact_pct=impact,
            a_to_b=a_to_b,
            slippage_bps=slippage_bps,
        )

    def preview_add_liquidity(
        self,
        token_a_mint: AddressLike,
        token_b_mint: AddressLike,
        max_token_a: int,
        max_token_b: int,
    ) -> int:
        """
        LP tokens a deposit would mint against the live pool snapshot

        An empty pool mints isqrt(max_token_a * max_token_b).
        """
        pool = self.get_pool_info(token_a_mint, token_b_mint)
        return quote_add_liquidity(
            max_token_a,
            max_token_b,
            pool.token_a_reserve,
            pool.token_b_reserve,
            pool.lp_token_supply,
        )

    def preview_remove_liquidity(
        self,
        token_a_mint: AddressLike,
        token_b_mint: AddressLike,
        lp_amount: int,
    ) -> Tuple[int, int]:
        """
        (token_a, token_b) returned for burning lp_amount against the live pool snapshot

        Raises:
            ConfigurationError: lp_amount exceeds the pool's LP supply
        """
        pool = self.get_pool_info(token_a_mint, token_b_mint)
        return quote_remove_liquidity(
            lp_amount,
            pool.token_a_reserve,
            pool.token_b_reserve,
            pool.lp_token_supply,
        )

    # ========== Lifecycle ==========

    def close(self):
        """Close client connections and release resources"""
        if self._rpc is not None:
            self._rpc.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self) -> str:
        endpoint = self._rpc.endpoint if self._rpc is not None else None
        return f"AmmClient(program={self._program.program_id}, endpoint={endpoint})"

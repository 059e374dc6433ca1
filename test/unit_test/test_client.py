"""
Unit tests for AmmClient

Builders are checked offline; reads use a mocked RpcClient.
"""

import sys
from decimal import Decimal
from pathlib import Path
from unittest.mock import Mock

import pytest

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from solders.instruction import Instruction
from solders.pubkey import Pubkey

from amm_client import AmmClient
from amm_client.config import ProgramConfig, config as global_config
from amm_client.errors import (
    AccountNotFound,
    ConfigurationError,
    ErrorCode,
    InvalidAccountData,
    InvalidMintPair,
)
from amm_client.infra import AccountInfo, RpcClient
from amm_client.program import quote_swap
from amm_client.program.pda import get_associated_token_address

from test_pool_parser import build_mint_data, build_pool_data, build_token_account_data


PROGRAM_ID = "pDPr3yM12LyCwU9kN8DqgqF1C56Gf9VH5xU4dE4f8Bs"
SOL_MINT = "So11111111111111111111111111111111111111112"
USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
POOL_ADDRESS = "DmmbZuXW4EezUyWbtXXbYGqafs11DG9qYnuLPwaqCWaW"
AUTHORITY_ADDRESS = "GM7nE5RkArYPunuD92HqJECDEoHNKi5ByAWgzC32N7ft"
LP_MINT_ADDRESS = "6eVH6UeU6fLVMMwudSQf4c1wBh9Zpa9PMJSMomxS5Pw3"
TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"


def _account(data: bytes, address: str = POOL_ADDRESS) -> AccountInfo:
    return AccountInfo(address=address, owner=TOKEN_PROGRAM_ID, lamports=1, data=data)


@pytest.fixture
def program_config():
    return ProgramConfig(program_id=PROGRAM_ID)


@pytest.fixture
def mock_rpc():
    rpc = Mock(spec=RpcClient)
    rpc.endpoint = "https://mock.example.com"
    rpc.get_account_info.return_value = None
    return rpc


@pytest.fixture
def client(mock_rpc, program_config):
    return AmmClient(mock_rpc, program_config=program_config)


@pytest.fixture
def user():
    return Pubkey.new_unique()


def _ata(owner, mint, program_config):
    return get_associated_token_address(owner, mint, program_config=program_config)


def _pool_account(reserve_a=1_000_000, reserve_b=2_000_000, supply=1_414_213, fee=30):
    data = build_pool_data(
        Pubkey.from_string(SOL_MINT),
        Pubkey.from_string(USDC_MINT),
        Pubkey.from_string(LP_MINT_ADDRESS),
        Pubkey.from_string(AUTHORITY_ADDRESS),
        reserve_a,
        reserve_b,
        supply,
        fee,
    )
    return _account(data)


class TestAddresses:
    """Pool address derivation through the facade"""

    def test_pool_address(self, client):
        address, bump = client.get_pool_address(SOL_MINT, USDC_MINT)
        assert str(address) == POOL_ADDRESS
        assert bump == 248

    def test_lp_mint_and_authority(self, client):
        lp_mint, lp_bump = client.get_lp_token_mint_address(SOL_MINT, USDC_MINT)
        authority, authority_bump = client.get_pool_authority_address(SOL_MINT, USDC_MINT)
        assert str(lp_mint) == LP_MINT_ADDRESS
        assert lp_bump == 254
        assert str(authority) == AUTHORITY_ADDRESS
        assert authority_bump == 254

    def test_get_pool_addresses(self, client):
        addresses = client.get_pool_addresses(SOL_MINT, USDC_MINT)
        assert str(addresses.pool.address) == POOL_ADDRESS
        assert str(addresses.lp_token_mint.address) == LP_MINT_ADDRESS
        assert str(addresses.authority.address) == AUTHORITY_ADDRESS

    def test_reversed_pair(self, client):
        forward, _ = client.get_pool_address(SOL_MINT, USDC_MINT)
        reverse, _ = client.get_pool_address(USDC_MINT, SOL_MINT)
        assert forward != reverse

    def test_identical_mints(self, client):
        with pytest.raises(InvalidMintPair):
            client.get_pool_address(SOL_MINT, SOL_MINT)

    def test_no_rpc_needed(self, program_config, monkeypatch):
        monkeypatch.setattr(global_config.rpc, "url", "")
        offline = AmmClient(program_config=program_config)
        address, _ = offline.get_pool_address(SOL_MINT, USDC_MINT)
        assert str(address) == POOL_ADDRESS
        with pytest.raises(ConfigurationError) as exc_info:
            offline.get_pool_info(SOL_MINT, USDC_MINT)
        assert exc_info.value.code == ErrorCode.CONFIG_MISSING


class TestInstructionBuilders:
    """Instruction builders resolve the right accounts"""

    def test_initialize_pool(self, client, program_config, user):
        ix = client.create_initialize_pool_instruction(user, SOL_MINT, USDC_MINT, fee_rate=30)
        authority = Pubkey.from_string(AUTHORITY_ADDRESS)
        keys = [m.pubkey for m in ix.accounts]

        assert isinstance(ix, Instruction)
        assert ix.program_id == Pubkey.from_string(PROGRAM_ID)
        assert bytes(ix.data) == bytes([0, 30, 0])
        assert len(keys) == 13
        assert keys[0] == user
        assert str(keys[1]) == POOL_ADDRESS
        assert str(keys[2]) == SOL_MINT
        assert str(keys[3]) == USDC_MINT
        assert str(keys[4]) == LP_MINT_ADDRESS
        assert keys[5] == _ata(authority, SOL_MINT, program_config)
        assert keys[6] == _ata(authority, USDC_MINT, program_config)
        assert keys[7] == authority

    def test_initialize_pool_default_fee(self, client, user):
        ix = client.create_initialize_pool_instruction(user, SOL_MINT, USDC_MINT)
        fee = global_config.trading.default_fee_rate_bps
        assert bytes(ix.data) == bytes([0]) + fee.to_bytes(2, "little")

    def test_initialize_pool_rejects_fee(self, client, user):
        with pytest.raises(ConfigurationError):
            client.create_initialize_pool_instruction(user, SOL_MINT, USDC_MINT, fee_rate=10_001)

    def test_add_liquidity(self, client, program_config, user):
        ix = client.create_add_liquidity_instruction(user, SOL_MINT, USDC_MINT, 1_000, 2_000, 1)
        authority = Pubkey.from_string(AUTHORITY_ADDRESS)
        lp_mint = Pubkey.from_string(LP_MINT_ADDRESS)
        keys = [m.pubkey for m in ix.accounts]

        assert bytes(ix.data)[0] == 1
        assert keys[:9] == [
            user,
            Pubkey.from_string(POOL_ADDRESS),
            authority,
            _ata(user, SOL_MINT, program_config),
            _ata(user, USDC_MINT, program_config),
            _ata(authority, SOL_MINT, program_config),
            _ata(authority, USDC_MINT, program_config),
            lp_mint,
            _ata(user, lp_mint, program_config),
        ]
        assert ix.accounts[0].is_signer and not ix.accounts[0].is_writable

    def test_remove_liquidity_matches_add(self, client, user):
        add_ix = client.create_add_liquidity_instruction(user, SOL_MINT, USDC_MINT, 1, 1, 1)
        remove_ix = client.create_remove_liquidity_instruction(user, SOL_MINT, USDC_MINT, 1, 1, 1)
        assert add_ix.accounts == remove_ix.accounts
        assert bytes(remove_ix.data)[0] == 2

    def test_swap_a_to_b(self, client, program_config, user):
        ix = client.create_swap_instruction(user, SOL_MINT, USDC_MINT, 100_000, 9_000_000, a_to_b=True)
        authority = Pubkey.from_string(AUTHORITY_ADDRESS)
        keys = [m.pubkey for m in ix.accounts]

        data = bytes(ix.data)
        assert len(data) == 18
        assert data[0] == 0x03
        assert data[17] == 1

        assert keys[0] == user
        assert str(keys[1]) == POOL_ADDRESS
        assert keys[2] == authority
        assert keys[3] == _ata(user, SOL_MINT, program_config)
        assert keys[4] == _ata(user, USDC_MINT, program_config)
        assert keys[5] == _ata(authority, SOL_MINT, program_config)
        assert keys[6] == _ata(authority, USDC_MINT, program_config)

    def test_swap_b_to_a(self, client, program_config, user):
        ix = client.create_swap_instruction(user, SOL_MINT, USDC_MINT, 100_000, 0, a_to_b=False)
        authority = Pubkey.from_string(AUTHORITY_ADDRESS)
        keys = [m.pubkey for m in ix.accounts]

        assert bytes(ix.data)[17] == 0
        # Same pool, input and output flipped
        assert str(keys[1]) == POOL_ADDRESS
        assert keys[3] == _ata(user, USDC_MINT, program_config)
        assert keys[4] == _ata(user, SOL_MINT, program_config)
        assert keys[5] == _ata(authority, USDC_MINT, program_config)
        assert keys[6] == _ata(authority, SOL_MINT, program_config)

    def test_swap_identical_mints(self, client, user):
        with pytest.raises(InvalidMintPair):
            client.create_swap_instruction(user, USDC_MINT, USDC_MINT, 1, 0, a_to_b=True)

    def test_builders_do_not_touch_rpc(self, client, mock_rpc, user):
        client.create_swap_instruction(user, SOL_MINT, USDC_MINT, 1, 0, a_to_b=True)
        client.create_add_liquidity_instruction(user, SOL_MINT, USDC_MINT, 1, 1, 1)
        assert not mock_rpc.get_account_info.called


class TestReads:
    """RPC-backed reads"""

    def test_get_pool_info(self, client, mock_rpc):
        mock_rpc.get_account_info.return_value = _pool_account()

        pool = client.get_pool_info(SOL_MINT, USDC_MINT)

        mock_rpc.get_account_info.assert_called_once_with(POOL_ADDRESS)
        assert pool.address == POOL_ADDRESS
        assert pool.token_a_mint == SOL_MINT
        assert pool.token_b_mint == USDC_MINT
        assert pool.token_a_reserve == 1_000_000
        assert pool.token_b_reserve == 2_000_000
        assert pool.fee_rate == 30

    def test_get_pool_info_missing(self, client):
        with pytest.raises(AccountNotFound) as exc_info:
            client.get_pool_info(SOL_MINT, USDC_MINT)
        assert exc_info.value.code == ErrorCode.POOL_NOT_FOUND
        assert exc_info.value.address == POOL_ADDRESS

    def test_get_token_balance(self, client, mock_rpc, program_config, user):
        mint = Pubkey.from_string(USDC_MINT)
        mock_rpc.get_account_info.return_value = _account(build_token_account_data(mint, user, 42_000))

        assert client.get_token_balance(user, USDC_MINT) == 42_000
        expected_ata = str(_ata(user, USDC_MINT, program_config))
        mock_rpc.get_account_info.assert_called_once_with(expected_ata)

    def test_get_token_balance_missing_account(self, client, user):
        assert client.get_token_balance(user, USDC_MINT) == 0

    def test_get_token_info(self, client, mock_rpc):
        mock_rpc.get_account_info.return_value = _account(build_mint_data(6))

        token = client.get_token_info(USDC_MINT)
        assert token.mint == USDC_MINT
        assert token.decimals == 6
        assert token.symbol == "UNKNOWN"
        assert token.name == "Unknown Token"

        named = client.get_token_info(USDC_MINT, symbol="USDC", name="USD Coin")
        assert named.symbol == "USDC"

    def test_get_token_balance_truncated_account(self, client, mock_rpc, program_config, user):
        mock_rpc.get_account_info.return_value = _account(bytes(10))

        with pytest.raises(InvalidAccountData) as exc_info:
            client.get_token_balance(user, USDC_MINT)
        assert exc_info.value.code == ErrorCode.ACCOUNT_INVALID_DATA
        assert exc_info.value.address == str(_ata(user, USDC_MINT, program_config))
        assert "10" in exc_info.value.message

    def test_get_token_info_truncated_mint(self, client, mock_rpc):
        mock_rpc.get_account_info.return_value = _account(bytes(40))

        with pytest.raises(InvalidAccountData) as exc_info:
            client.get_token_info(USDC_MINT)
        assert exc_info.value.address == USDC_MINT

    def test_get_token_info_missing_mint(self, client):
        assert client.get_token_info(USDC_MINT) is None

    def test_get_token_account(self, client, mock_rpc, program_config, user):
        with pytest.raises(AccountNotFound) as exc_info:
            client.get_token_account(user, USDC_MINT)
        assert exc_info.value.code == ErrorCode.ACCOUNT_NOT_FOUND

        mock_rpc.get_account_info.return_value = _account(
            build_token_account_data(Pubkey.from_string(USDC_MINT), user, 1)
        )
        assert client.get_token_account(user, USDC_MINT) == _ata(user, USDC_MINT, program_config)

    def test_create_ata_if_needed_missing(self, client, program_config, user):
        ix = client.create_associated_token_account_instruction_if_needed(user, user, USDC_MINT)

        assert ix is not None
        assert ix.program_id == Pubkey.from_string(program_config.associated_token_program_id)
        assert ix.accounts[1].pubkey == _ata(user, USDC_MINT, program_config)
        assert str(ix.accounts[3].pubkey) == USDC_MINT

    def test_create_ata_if_needed_exists(self, client, mock_rpc, user):
        mock_rpc.get_account_info.return_value = _account(
            build_token_account_data(Pubkey.from_string(USDC_MINT), user, 0)
        )
        assert client.create_associated_token_account_instruction_if_needed(user, user, USDC_MINT) is None


class TestPreviews:
    """Swap and liquidity previews against the pool snapshot"""

    def test_quote_passthroughs(self):
        assert AmmClient.quote_swap(100_000, 1_000_000, 2_000_000, 30) == 181322
        assert AmmClient.quote_price_impact(0, 1_000_000, 2_000_000, 30) == 0

    def test_preview_swap_a_to_b(self, client, mock_rpc):
        mock_rpc.get_account_info.return_value = _pool_account()

        quote = client.preview_swap(SOL_MINT, USDC_MINT, 100_000, a_to_b=True, slippage_bps=50)

        assert quote.amount_in == 100_000
        assert quote.amount_out == 181322
        assert quote.fee_amount == 300
        assert quote.minimum_amount_out == 180_415
        assert Decimal("17.33") < quote.price_impact_pct < Decimal("17.34")
        assert quote.a_to_b is True
        assert not quote.is_empty

    def test_preview_swap_b_to_a(self, client, mock_rpc):
        mock_rpc.get_account_info.return_value = _pool_account()

        quote = client.preview_swap(SOL_MINT, USDC_MINT, 100_000, a_to_b=False, slippage_bps=0)

        assert quote.amount_out == quote_swap(100_000, 2_000_000, 1_000_000, 30)
        assert quote.amount_out == 47_482
        assert quote.minimum_amount_out == quote.amount_out

    def test_preview_swap_default_slippage(self, client, mock_rpc):
        mock_rpc.get_account_info.return_value = _pool_account()

        quote = client.preview_swap(SOL_MINT, USDC_MINT, 100_000, a_to_b=True)
        assert quote.slippage_bps == global_config.trading.default_slippage_bps

    def test_preview_swap_empty_pool(self, client, mock_rpc):
        mock_rpc.get_account_info.return_value = _pool_account(reserve_a=0, reserve_b=0, supply=0)

        quote = client.preview_swap(SOL_MINT, USDC_MINT, 100_000, a_to_b=True, slippage_bps=50)
        assert quote.amount_out == 0
        assert quote.minimum_amount_out == 0
        assert quote.price_impact_pct == 0
        assert quote.is_empty

    def test_preview_swap_missing_pool(self, client):
        with pytest.raises(AccountNotFound):
            client.preview_swap(SOL_MINT, USDC_MINT, 100_000, a_to_b=True)

    def test_preview_add_liquidity(self, client, mock_rpc):
        mock_rpc.get_account_info.return_value = _pool_account()

        assert client.preview_add_liquidity(SOL_MINT, USDC_MINT, 100_000, 200_000) == 141_421
        # Scarcer side limits the credit
        assert client.preview_add_liquidity(SOL_MINT, USDC_MINT, 100_000, 20_000) == 14_142
        mock_rpc.get_account_info.assert_called_with(POOL_ADDRESS)

    def test_preview_add_liquidity_empty_pool(self, client, mock_rpc):
        mock_rpc.get_account_info.return_value = _pool_account(reserve_a=0, reserve_b=0, supply=0)

        assert client.preview_add_liquidity(SOL_MINT, USDC_MINT, 100_000, 400_000) == 200_000

    def test_preview_remove_liquidity(self, client, mock_rpc):
        mock_rpc.get_account_info.return_value = _pool_account()

        assert client.preview_remove_liquidity(SOL_MINT, USDC_MINT, 141_421) == (99_999, 199_999)
        assert client.preview_remove_liquidity(SOL_MINT, USDC_MINT, 1_414_213) == (1_000_000, 2_000_000)

    def test_preview_remove_liquidity_exceeds_supply(self, client, mock_rpc):
        mock_rpc.get_account_info.return_value = _pool_account()

        with pytest.raises(ConfigurationError):
            client.preview_remove_liquidity(SOL_MINT, USDC_MINT, 1_414_214)

    def test_preview_liquidity_missing_pool(self, client):
        with pytest.raises(AccountNotFound):
            client.preview_add_liquidity(SOL_MINT, USDC_MINT, 1, 1)
        with pytest.raises(AccountNotFound):
            client.preview_remove_liquidity(SOL_MINT, USDC_MINT, 1)


class TestLifecycle:
    """Construction and cleanup"""

    def test_context_manager_closes_rpc(self, mock_rpc, program_config):
        with AmmClient(mock_rpc, program_config=program_config) as client:
            assert client.rpc is mock_rpc
        mock_rpc.close.assert_called_once()

    def test_url_creates_rpc_client(self, program_config):
        client = AmmClient("https://api.devnet.solana.com", program_config=program_config)
        assert isinstance(client.rpc, RpcClient)
        assert client.rpc.endpoint == "https://api.devnet.solana.com"
        client.close()

    def test_program_id(self, client):
        assert client.program_id == Pubkey.from_string(PROGRAM_ID)
        assert "pDPr3yM1" in repr(client)

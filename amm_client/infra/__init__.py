"""
Infrastructure layer for the AMM client

Provides:
- RpcClient: JSON-RPC transport with retry logic and endpoint fallback
- AccountInfo: decoded getAccountInfo value
"""

from .rpc import AccountInfo, RpcClient, RpcClientConfig

__all__ = [
    "AccountInfo",
    "RpcClient",
    "RpcClientConfig",
]

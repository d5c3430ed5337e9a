"""
Static registry of the EVM networks that are polled.

Adding a network means adding an entry to CHAIN_TABLE. Each RPC endpoint
can be overridden with a ``<KEY>_RPC_URL`` environment variable.
"""

import os
from dataclasses import dataclass
from typing import Dict, List, Optional


@dataclass(frozen=True)
class ChainDescriptor:
    """Immutable description of one supported network."""

    key: str
    id: int
    name: str
    rpc_url: str
    native_symbol: str
    native_decimals: int = 18


# Registry order is the order chains are visited for every wallet
CHAIN_TABLE: List[ChainDescriptor] = [
    ChainDescriptor("ethereum", 1, "Ethereum", "https://eth.llamarpc.com", "ETH"),
    ChainDescriptor("bnb", 56, "BNB Chain", "https://bsc-dataseed.binance.org", "BNB"),
    ChainDescriptor("polygon", 137, "Polygon", "https://polygon-rpc.com", "MATIC"),
    ChainDescriptor("avalanche", 43114, "Avalanche", "https://api.avax.network/ext/bc/C/rpc", "AVAX"),
    ChainDescriptor("optimism", 10, "Optimism", "https://mainnet.optimism.io", "ETH"),
    ChainDescriptor("arbitrum", 42161, "Arbitrum", "https://arb1.arbitrum.io/rpc", "ETH"),
    ChainDescriptor("base", 8453, "Base", "https://mainnet.base.org", "ETH"),
    ChainDescriptor("cronos", 25, "Cronos", "https://evm.cronos.org", "CRO"),
]

SUPPORTED_CHAINS = [chain.key for chain in CHAIN_TABLE]


def _with_env_override(chain: ChainDescriptor, environ: Dict[str, str]) -> ChainDescriptor:
    override = environ.get(f"{chain.key.upper()}_RPC_URL")
    if not override:
        return chain
    return ChainDescriptor(
        key=chain.key,
        id=chain.id,
        name=chain.name,
        rpc_url=override,
        native_symbol=chain.native_symbol,
        native_decimals=chain.native_decimals,
    )


def get_chains(
    keys: Optional[List[str]] = None,
    environ: Optional[Dict[str, str]] = None,
) -> List[ChainDescriptor]:
    """
    Resolve chain keys to descriptors, keeping registry order.

    Args:
        keys: Chain keys to select (case-insensitive). None selects all chains.
        environ: Environment used for RPC URL overrides (defaults to os.environ)

    Returns:
        List of ChainDescriptor in registry order

    Raises:
        ValueError: If any key is not a supported chain
    """
    if environ is None:
        environ = dict(os.environ)

    if keys is None:
        selected = set(SUPPORTED_CHAINS)
    else:
        selected = set()
        for key in keys:
            key_lower = key.lower()
            if key_lower not in SUPPORTED_CHAINS:
                raise ValueError(
                    f"Unsupported chain: {key}. Supported: {', '.join(SUPPORTED_CHAINS)}"
                )
            selected.add(key_lower)

    return [_with_env_override(chain, environ) for chain in CHAIN_TABLE if chain.key in selected]

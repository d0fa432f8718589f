"""
Supported Flare networks and their public endpoints.

Reference: https://dev.flare.network/network/overview
"""

from typing import Dict, List, Optional, TypedDict


class NetworkConfig(TypedDict):
    name: str
    chain_id: int
    rpc_url: str
    da_layer_url: str
    verifier_url: str
    web2json_verifier_url: str
    explorer_url: str
    testnet: bool


SUPPORTED_NETWORKS: Dict[str, NetworkConfig] = {
    # Mainnets
    "flare": {
        "name": "Flare",
        "chain_id": 14,
        "rpc_url": "https://flare-api.flare.network/ext/C/rpc",
        "da_layer_url": "https://flr-data-availability.flare.network/",
        "verifier_url": "https://fdc-verifiers-mainnet.flare.network/",
        "web2json_verifier_url": "https://web2json-verifier.flare.rocks/",
        "explorer_url": "https://flare-systems-explorer.flare.network/",
        "testnet": False,
    },
    "songbird": {
        "name": "Songbird",
        "chain_id": 19,
        "rpc_url": "https://songbird-api.flare.network/ext/C/rpc",
        "da_layer_url": "https://sgb-data-availability.flare.network/",
        "verifier_url": "https://fdc-verifiers-mainnet.flare.network/",
        "web2json_verifier_url": "https://web2json-verifier.flare.rocks/",
        "explorer_url": "https://songbird-systems-explorer.flare.network/",
        "testnet": False,
    },

    # Testnets
    "coston": {
        "name": "Coston",
        "chain_id": 16,
        "rpc_url": "https://coston-api.flare.network/ext/C/rpc",
        "da_layer_url": "https://ctn-data-availability.flare.network/",
        "verifier_url": "https://fdc-verifiers-testnet.flare.network/",
        "web2json_verifier_url": "https://web2json-verifier-test.flare.rocks/",
        "explorer_url": "https://coston-systems-explorer.flare.rocks/",
        "testnet": True,
    },
    "coston2": {
        "name": "Coston2",
        "chain_id": 114,
        "rpc_url": "https://coston2-api.flare.network/ext/C/rpc",
        "da_layer_url": "https://ctn2-data-availability.flare.network/",
        "verifier_url": "https://fdc-verifiers-testnet.flare.network/",
        "web2json_verifier_url": "https://web2json-verifier-test.flare.rocks/",
        "explorer_url": "https://coston2-systems-explorer.flare.rocks/",
        "testnet": True,
    },
}

# Default network
DEFAULT_NETWORK = "coston2"

# Source id -> verifier URL segment for EVMTransaction requests
_SOURCE_CHAIN_SEGMENTS: Dict[str, str] = {
    "ETH": "eth",
    "FLR": "flr",
    "SGB": "sgb",
    "BTC": "btc",
    "DOGE": "doge",
    "XRP": "xrp",
}


def get_supported_network_ids() -> List[str]:
    """Get list of all supported network IDs."""
    return list(SUPPORTED_NETWORKS.keys())


def is_network_supported(network: str) -> bool:
    """Check if a network is supported."""
    return network in SUPPORTED_NETWORKS


def get_network_config(network: str) -> NetworkConfig:
    """Get configuration for a network. Raises KeyError if not supported."""
    if network not in SUPPORTED_NETWORKS:
        raise KeyError(f"Unsupported network: {network}. Supported: {get_supported_network_ids()}")
    return SUPPORTED_NETWORKS[network]


# Build reverse lookup: chain_id -> network_id
_CHAIN_ID_TO_NETWORK: Dict[int, str] = {
    config["chain_id"]: network_id
    for network_id, config in SUPPORTED_NETWORKS.items()
}


def get_network_by_chain_id(chain_id: int) -> str:
    """
    Get network ID from chain ID.

    Args:
        chain_id: The chain ID (e.g., 14 for Flare, 114 for Coston2)

    Returns:
        Network ID string (e.g., 'flare', 'coston2')

    Raises:
        KeyError if chain_id is not supported
    """
    if chain_id not in _CHAIN_ID_TO_NETWORK:
        raise KeyError(f"Unsupported chain_id: {chain_id}. Supported chain IDs: {list(_CHAIN_ID_TO_NETWORK.keys())}")
    return _CHAIN_ID_TO_NETWORK[chain_id]


def resolve_network(network: Optional[str] = None, chain_id: Optional[int] = None) -> str:
    """
    Resolve network from either network string or chain_id.

    Priority: chain_id > network > default

    Raises:
        ValueError if the network string is not supported
    """
    if chain_id is not None:
        return get_network_by_chain_id(chain_id)
    if network is not None:
        if not is_network_supported(network):
            raise ValueError(f"Unsupported network: {network}. Supported: {get_supported_network_ids()}")
        return network
    return DEFAULT_NETWORK


def source_id_for(network: str, chain: str) -> str:
    """Source id for a chain symbol as seen from `network` ('ETH' -> 'testETH' on testnets)."""
    chain = chain.upper()
    return f"test{chain}" if get_network_config(network)["testnet"] else chain


def verifier_chain_segment(source_id: str) -> str:
    """
    URL segment of the EVMTransaction verifier for a source id.

    Raises:
        KeyError for unknown source ids
    """
    symbol = source_id[4:] if source_id.startswith("test") else source_id
    symbol = symbol.upper()
    if symbol not in _SOURCE_CHAIN_SEGMENTS:
        raise KeyError(f"Unknown source id: {source_id}. Known chains: {list(_SOURCE_CHAIN_SEGMENTS.keys())}")
    return _SOURCE_CHAIN_SEGMENTS[symbol]

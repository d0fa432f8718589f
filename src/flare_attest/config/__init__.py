"""Configuration module for flare_attest."""

from .networks import (
    SUPPORTED_NETWORKS,
    DEFAULT_NETWORK,
    NetworkConfig,
    get_supported_network_ids,
    is_network_supported,
    get_network_config,
    get_network_by_chain_id,
    resolve_network,
    source_id_for,
    verifier_chain_segment,
)
from .settings import BackoffPolicy, PipelineConfig

__all__ = [
    "SUPPORTED_NETWORKS",
    "DEFAULT_NETWORK",
    "NetworkConfig",
    "get_supported_network_ids",
    "is_network_supported",
    "get_network_config",
    "get_network_by_chain_id",
    "resolve_network",
    "source_id_for",
    "verifier_chain_segment",
    "BackoffPolicy",
    "PipelineConfig",
]

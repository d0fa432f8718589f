"""ABI, Merkle and feed-id helpers, plus the submission ledger."""
from .abi import (
    normalize_hex,
    hex_to_bytes,
    keccak,
    to_utf8_hex32,
    from_utf8_hex32,
    parse_abi_signature,
    abi_component_to_type,
)
from .feeds import get_feed_id, feed_name, resolve_feed_id, KNOWN_FEEDS
from .merkle import leaf_hash, verify_proof, merkle_root, merkle_proof
from .store import SubmissionStore

__all__ = [
    'normalize_hex',
    'hex_to_bytes',
    'keccak',
    'to_utf8_hex32',
    'from_utf8_hex32',
    'parse_abi_signature',
    'abi_component_to_type',
    'get_feed_id',
    'feed_name',
    'resolve_feed_id',
    'KNOWN_FEEDS',
    'leaf_hash',
    'verify_proof',
    'merkle_root',
    'merkle_proof',
    'SubmissionStore',
]

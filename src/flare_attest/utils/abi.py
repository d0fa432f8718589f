"""
ABI helpers shared by the encoder, verifier and decoder.

Canonical response shapes follow the Flare FDC and FTSO v2 structs so that
`eth_abi.encode([TYPE], [value])` reproduces Solidity's `abi.encode(struct)`.
"""

import json
from typing import Any, Dict, List, Mapping, Union

from web3 import Web3


# FtsoV2 FeedData: (votingRoundId, id, value, turnoutBIPS, decimals)
FEED_DATA_TYPE = "(uint32,bytes21,int32,uint16,int8)"

# IEVMTransaction.Response
EVM_EVENT_TYPE = "(uint32,address,bytes32[],bytes,bool)"
EVM_TRANSACTION_REQUEST_BODY_TYPE = "(bytes32,uint16,bool,bool,uint32[])"
EVM_TRANSACTION_RESPONSE_BODY_TYPE = (
    f"(uint64,uint64,address,bool,address,uint256,bytes,uint8,{EVM_EVENT_TYPE}[])"
)
EVM_TRANSACTION_RESPONSE_TYPE = (
    f"(bytes32,bytes32,uint64,uint64,"
    f"{EVM_TRANSACTION_REQUEST_BODY_TYPE},{EVM_TRANSACTION_RESPONSE_BODY_TYPE})"
)

# IWeb2Json.Response
WEB2JSON_REQUEST_BODY_TYPE = "(string,string,string,string,string,string,string)"
WEB2JSON_RESPONSE_TYPE = (
    f"(bytes32,bytes32,uint64,uint64,{WEB2JSON_REQUEST_BODY_TYPE},(bytes))"
)


def normalize_hex(value: Union[str, bytes]) -> str:
    """Return a lowercase 0x-prefixed hex string."""
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    value = value.strip()
    if value[:2].lower() == "0x":
        value = value[2:]
    bytes.fromhex(value)  # validates
    return "0x" + value.lower()


def hex_to_bytes(value: Union[str, bytes]) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    return bytes.fromhex(normalize_hex(value)[2:])


def keccak(data: bytes) -> bytes:
    return bytes(Web3.keccak(data))


def to_utf8_hex32(value: str) -> str:
    """
    Encode a short identifier as UTF-8 hex right-padded to 32 bytes.

    This is how the encoding service expects attestation types and source ids,
    e.g. "EVMTransaction" -> 0x45564d5472616e73616374696f6e0000...

    Raises:
        ValueError if the identifier does not fit in 32 bytes
    """
    raw = value.encode("utf-8")
    if len(raw) > 32:
        raise ValueError(f"Identifier longer than 32 bytes: {value!r}")
    return "0x" + raw.hex().ljust(64, "0")


def from_utf8_hex32(value: Union[str, bytes]) -> str:
    """Inverse of to_utf8_hex32: drop zero padding and decode."""
    return hex_to_bytes(value).rstrip(b"\x00").decode("utf-8", errors="replace")


# ============================================================================
# JSON ABI components (Web2Json abiSignature)
# ============================================================================

def parse_abi_signature(signature: Union[str, Mapping[str, Any]]) -> Dict[str, Any]:
    """Parse a JSON ABI component (string or dict) into a dict."""
    if isinstance(signature, str):
        try:
            component = json.loads(signature)
        except json.JSONDecodeError as e:
            raise ValueError(f"abiSignature is not valid JSON: {e}") from e
    else:
        component = dict(signature)

    if "type" not in component:
        raise ValueError("abiSignature component has no 'type'")
    return component


def abi_component_to_type(component: Mapping[str, Any]) -> str:
    """
    Convert a JSON ABI component to an eth_abi type string.

    {"type": "tuple", "components": [{"type": "uint256"}, {"type": "string"}]}
    becomes "(uint256,string)"; "tuple[]" keeps its array suffix.
    """
    abi_type = component["type"]
    if abi_type.startswith("tuple"):
        suffix = abi_type[len("tuple"):]
        inner = ",".join(abi_component_to_type(c) for c in component.get("components", []))
        return f"({inner}){suffix}"
    return abi_type


def _is_array(abi_type: str) -> bool:
    return abi_type.endswith("]")


def _element_component(component: Mapping[str, Any]) -> Dict[str, Any]:
    element = dict(component)
    element["type"] = component["type"][: component["type"].rindex("[")]
    return element


def decode_named(component: Mapping[str, Any], value: Any) -> Any:
    """Turn an eth_abi-decoded value into nested dicts keyed by component names."""
    abi_type = component["type"]
    if _is_array(abi_type):
        element = _element_component(component)
        return [decode_named(element, item) for item in value]
    if abi_type == "tuple":
        return {
            child.get("name") or str(i): decode_named(child, item)
            for i, (child, item) in enumerate(zip(component.get("components", []), value))
        }
    return value


def encode_named(component: Mapping[str, Any], value: Any) -> Any:
    """Inverse of decode_named: build the positional value eth_abi expects."""
    abi_type = component["type"]
    if _is_array(abi_type):
        element = _element_component(component)
        return [encode_named(element, item) for item in value]
    if abi_type == "tuple":
        children: List[Mapping[str, Any]] = component.get("components", [])
        if isinstance(value, Mapping):
            return tuple(
                encode_named(child, value[child.get("name") or str(i)])
                for i, child in enumerate(children)
            )
        return tuple(encode_named(child, item) for child, item in zip(children, value))
    return value


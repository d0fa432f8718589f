"""
Payload decoding.

The declared attestation type selects both the response ABI type and the
payload variant. Web2Json responses carry a second ABI layer: the
abiEncodedData bytes are decoded with the request's abiSignature.
"""

from typing import Any, Tuple

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from web3 import Web3

from ..errors import DecodeError
from ..models import (
    AttestationSpec,
    AttestationType,
    DecodedPayload,
    EVMEvent,
    EVMTransactionPayload,
    FeedDataPayload,
    ProofRecord,
    Web2JsonPayload,
)
from ..utils.abi import (
    EVM_TRANSACTION_RESPONSE_TYPE,
    FEED_DATA_TYPE,
    WEB2JSON_RESPONSE_TYPE,
    abi_component_to_type,
    decode_named,
    encode_named,
    from_utf8_hex32,
    normalize_hex,
    parse_abi_signature,
)


RESPONSE_TYPES = {
    AttestationType.EVM_TRANSACTION: EVM_TRANSACTION_RESPONSE_TYPE,
    AttestationType.WEB2JSON: WEB2JSON_RESPONSE_TYPE,
    AttestationType.FEED_DATA: FEED_DATA_TYPE,
}


def decode_response_tuple(attestation_type: AttestationType, raw_response: bytes) -> Tuple[Any, ...]:
    """
    Decode raw response bytes into the positional struct tuple.

    Raises:
        DecodeError when the bytes do not match the type's response shape
    """
    abi_type = RESPONSE_TYPES[attestation_type]
    try:
        (value,) = decode([abi_type], raw_response)
    except (DecodingError, OverflowError, ValueError, TypeError) as e:
        raise DecodeError(f"Response does not match {attestation_type.value} shape: {e}") from e
    return value


def decode_web2json_data(abi_signature: str, abi_encoded_data: bytes) -> dict:
    """Decode Web2Json abiEncodedData per its JSON abiSignature into named fields."""
    try:
        component = parse_abi_signature(abi_signature)
        abi_type = abi_component_to_type(component)
        (value,) = decode([abi_type], abi_encoded_data)
    except (DecodingError, OverflowError, ValueError, TypeError, KeyError) as e:
        raise DecodeError(f"abiEncodedData does not match abiSignature: {e}") from e

    named = decode_named(component, value)
    if not isinstance(named, dict):
        name = component.get("name") or "value"
        named = {name: named}
    return named


def encode_web2json_data(abi_signature: str, data: dict) -> bytes:
    """Encode named fields per a JSON abiSignature (what the verifier does after jq)."""
    component = parse_abi_signature(abi_signature)
    return encode([abi_component_to_type(component)], [encode_named(component, data)])


class PayloadDecoder:
    """Decodes a verified ProofRecord into the payload variant of its spec."""

    def decode(self, spec: AttestationSpec, record: ProofRecord) -> DecodedPayload:
        """
        Args:
            spec: The spec the proof was requested for
            record: A verified proof record

        Raises:
            DecodeError on shape mismatch or an unverified record
        """
        if not record.verified:
            raise DecodeError("Refusing to decode an unverified proof")
        if record.attestation_type is not spec.attestation_type:
            raise DecodeError(
                f"Proof is {record.attestation_type.value}, spec declares {spec.attestation_type.value}"
            )

        raw = decode_response_tuple(spec.attestation_type, record.raw_response)

        if spec.attestation_type is AttestationType.FEED_DATA:
            return self._feed_data(raw)
        if spec.attestation_type is AttestationType.EVM_TRANSACTION:
            return self._evm_transaction(raw)
        return self._web2json(spec, raw)

    @staticmethod
    def _feed_data(raw) -> FeedDataPayload:
        voting_round_id, feed_id, value, turnout_bips, decimals = raw
        return FeedDataPayload(
            voting_round_id=voting_round_id,
            feed_id=normalize_hex(feed_id),
            value=value,
            turnout_bips=turnout_bips,
            decimals=decimals,
            raw=raw,
        )

    @staticmethod
    def _evm_transaction(raw) -> EVMTransactionPayload:
        attestation_type, source_id, voting_round, lowest_ts, request_body, response_body = raw
        tx_hash, confirmations, provide_input, list_events, log_indices = request_body
        (block_number, timestamp, source_address, is_deployment, receiving_address,
         value, tx_input, status, events) = response_body

        return EVMTransactionPayload(
            attestation_type=from_utf8_hex32(attestation_type),
            source_id=from_utf8_hex32(source_id),
            voting_round=voting_round,
            lowest_used_timestamp=lowest_ts,
            transaction_hash=normalize_hex(tx_hash),
            required_confirmations=confirmations,
            provide_input=provide_input,
            list_events=list_events,
            log_indices=tuple(log_indices),
            block_number=block_number,
            timestamp=timestamp,
            source_address=Web3.to_checksum_address(source_address),
            is_deployment=is_deployment,
            receiving_address=Web3.to_checksum_address(receiving_address),
            value=value,
            input=tx_input,
            status=status,
            events=tuple(
                EVMEvent(
                    log_index=log_index,
                    emitter_address=Web3.to_checksum_address(emitter),
                    topics=tuple(normalize_hex(t) for t in topics),
                    data=data,
                    removed=removed,
                )
                for log_index, emitter, topics, data, removed in events
            ),
            raw=raw,
        )

    @staticmethod
    def _web2json(spec: AttestationSpec, raw) -> Web2JsonPayload:
        attestation_type, source_id, voting_round, lowest_ts, request_body, response_body = raw
        url, http_method, _headers, _query, _body, jq, abi_signature = request_body
        (abi_encoded_data,) = response_body

        # Declared response_signature wins; the response echoes the same signature.
        signature = spec.response_signature or abi_signature
        data = decode_web2json_data(signature, abi_encoded_data)

        return Web2JsonPayload(
            attestation_type=from_utf8_hex32(attestation_type),
            source_id=from_utf8_hex32(source_id),
            voting_round=voting_round,
            lowest_used_timestamp=lowest_ts,
            url=url,
            http_method=http_method,
            post_process_jq=jq,
            abi_signature=abi_signature,
            abi_encoded_data=abi_encoded_data,
            data=data,
            raw=raw,
        )

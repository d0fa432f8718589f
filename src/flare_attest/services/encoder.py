"""
Request encoding.

FDC attestation specs are turned into their canonical ABI-encoded request by
the verifier's prepareRequest endpoint. Feed specs need no service: feeds are
published every round, so their request is just the encoded feed id list.
"""

import requests
from eth_abi import encode

from ..config.networks import verifier_chain_segment
from ..config.settings import PipelineConfig
from ..errors import EncodingError
from ..models import AttestationSpec, AttestationType, EncodedRequest
from ..utils.abi import hex_to_bytes


class RequestEncoder:
    """Turns an AttestationSpec into an EncodedRequest. No retries at this layer."""

    def __init__(self, config: PipelineConfig, session: requests.Session = None):
        self.config = config
        self.session = session or requests.Session()

    def endpoint_for(self, spec: AttestationSpec) -> str:
        """prepareRequest URL for an AttestationSpec's type."""
        if spec.attestation_type is AttestationType.EVM_TRANSACTION:
            try:
                chain = verifier_chain_segment(spec.source_id)
            except KeyError as e:
                raise EncodingError(str(e)) from e
            return f"{self.config.verifier_url}verifier/{chain}/EVMTransaction/prepareRequest"
        if spec.attestation_type is AttestationType.WEB2JSON:
            return f"{self.config.web2json_verifier_url}Web2Json/prepareRequest"
        raise EncodingError(f"No encoding service for {spec.attestation_type.value}")

    def encode(self, spec: AttestationSpec) -> EncodedRequest:
        """
        Encode a spec.

        Raises:
            EncodingError if the service is unreachable, answers with a
            non-success status, or returns no abiEncodedRequest
        """
        if spec.attestation_type is AttestationType.FEED_DATA:
            feed_ids = [hex_to_bytes(f) for f in spec.feed_ids]
            return EncodedRequest(encode(["bytes21[]"], [feed_ids]))

        url = self.endpoint_for(spec)
        headers = {"Content-Type": "application/json"}
        if self.config.verifier_api_key:
            headers["X-API-KEY"] = self.config.verifier_api_key

        print(f"[...] Preparing {spec.attestation_type.value} request: {url}")
        try:
            response = self.session.post(
                url,
                json=spec.to_service_payload(),
                headers=headers,
                timeout=self.config.request_timeout,
            )
        except requests.RequestException as e:
            raise EncodingError(f"Encoding service unreachable: {e}") from e

        if response.status_code != 200:
            raise EncodingError(
                f"Encoding service responded with status {response.status_code}: {response.text[:200]}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise EncodingError(f"Encoding service returned invalid JSON: {e}") from e

        status = data.get("status")
        if status is not None and status != "VALID":
            raise EncodingError(f"Encoding service rejected request: status={status}")

        encoded = data.get("abiEncodedRequest")
        if not encoded:
            raise EncodingError("Encoding service response has no abiEncodedRequest")

        try:
            request = EncodedRequest(encoded)
        except ValueError as e:
            raise EncodingError(f"abiEncodedRequest is not valid hex: {e}") from e

        print(f"[OK] Encoded request: {len(request.as_bytes())} bytes")
        return request

"""
Flare system contract resolution.

Addresses are looked up by name in the FlareContractRegistry and cached per
client, so a FlareContracts instance is cheap to reuse across attestations.
"""

from typing import Dict, Optional

from web3 import Web3

from ..config.settings import PipelineConfig
from .abis import CONTRACT_ABIS, FLARE_CONTRACT_REGISTRY_ABI, FLARE_CONTRACT_REGISTRY_ADDRESS


def connect(config: PipelineConfig) -> Web3:
    """Web3 client for the configured RPC endpoint."""
    w3 = Web3(Web3.HTTPProvider(config.rpc_url, request_kwargs={"timeout": config.request_timeout}))
    print(f"[OK] RPC: {config.rpc_url} ({config.network})")
    return w3


class FlareContracts:
    """Lazily resolved Flare system contracts."""

    def __init__(self, w3: Web3, registry_address: str = FLARE_CONTRACT_REGISTRY_ADDRESS):
        self.w3 = w3
        self.registry = w3.eth.contract(
            address=Web3.to_checksum_address(registry_address),
            abi=FLARE_CONTRACT_REGISTRY_ABI,
        )
        self._contracts: Dict[str, object] = {}

    def address_of(self, name: str) -> str:
        address = self.registry.functions.getContractAddressByName(name).call()
        if int(address, 16) == 0:
            raise KeyError(f"Contract not registered: {name}")
        return Web3.to_checksum_address(address)

    def get(self, name: str, abi: Optional[list] = None):
        """
        Get a system contract by registry name.

        Args:
            name: Registry name, e.g. 'FdcHub' or 'Relay'
            abi: ABI override; defaults to the bundled minimal ABI

        Raises:
            KeyError if the name is unknown or not registered
        """
        if name not in self._contracts:
            if abi is None:
                if name not in CONTRACT_ABIS:
                    raise KeyError(f"No ABI bundled for {name}. Supported: {list(CONTRACT_ABIS.keys())}")
                abi = CONTRACT_ABIS[name]
            self._contracts[name] = self.w3.eth.contract(address=self.address_of(name), abi=abi)
        return self._contracts[name]

    @property
    def fdc_hub(self):
        return self.get("FdcHub")

    @property
    def fee_configurations(self):
        return self.get("FdcRequestFeeConfigurations")

    @property
    def systems_manager(self):
        return self.get("FlareSystemsManager")

    @property
    def relay(self):
        return self.get("Relay")

    @property
    def fdc_verification(self):
        return self.get("FdcVerification")

    @property
    def ftso_v2(self):
        return self.get("FtsoV2")

"""Minimal ABIs for the Flare system contracts the pipeline touches."""

# Same address on every Flare network
FLARE_CONTRACT_REGISTRY_ADDRESS = "0xaD67FE66660Fb8dFE9d6b1b4240d8650e30F6019"


def _fn(name, inputs, outputs, mutability="view"):
    return {
        "type": "function",
        "name": name,
        "stateMutability": mutability,
        "inputs": inputs,
        "outputs": outputs,
    }


def _arg(name, abi_type, components=None):
    arg = {"name": name, "type": abi_type, "internalType": abi_type}
    if components is not None:
        arg["components"] = components
    return arg


FLARE_CONTRACT_REGISTRY_ABI = [
    _fn("getContractAddressByName", [_arg("_name", "string")], [_arg("", "address")]),
]

FDC_HUB_ABI = [
    _fn("requestAttestation", [_arg("_data", "bytes")], [], mutability="payable"),
]

FDC_REQUEST_FEE_CONFIGURATIONS_ABI = [
    _fn("getRequestFee", [_arg("_data", "bytes")], [_arg("", "uint256")]),
]

FLARE_SYSTEMS_MANAGER_ABI = [
    _fn("firstVotingRoundStartTs", [], [_arg("", "uint64")]),
    _fn("votingEpochDurationSeconds", [], [_arg("", "uint64")]),
]

RELAY_ABI = [
    _fn("merkleRoots", [_arg("_protocolId", "uint256"), _arg("_votingRoundId", "uint256")],
        [_arg("", "bytes32")]),
]

# Struct components

_EVM_EVENT = [
    _arg("logIndex", "uint32"),
    _arg("emitterAddress", "address"),
    _arg("topics", "bytes32[]"),
    _arg("data", "bytes"),
    _arg("removed", "bool"),
]

_EVM_TRANSACTION_RESPONSE = [
    _arg("attestationType", "bytes32"),
    _arg("sourceId", "bytes32"),
    _arg("votingRound", "uint64"),
    _arg("lowestUsedTimestamp", "uint64"),
    _arg("requestBody", "tuple", [
        _arg("transactionHash", "bytes32"),
        _arg("requiredConfirmations", "uint16"),
        _arg("provideInput", "bool"),
        _arg("listEvents", "bool"),
        _arg("logIndices", "uint32[]"),
    ]),
    _arg("responseBody", "tuple", [
        _arg("blockNumber", "uint64"),
        _arg("timestamp", "uint64"),
        _arg("sourceAddress", "address"),
        _arg("isDeployment", "bool"),
        _arg("receivingAddress", "address"),
        _arg("value", "uint256"),
        _arg("input", "bytes"),
        _arg("status", "uint8"),
        _arg("events", "tuple[]", _EVM_EVENT),
    ]),
]

_WEB2JSON_RESPONSE = [
    _arg("attestationType", "bytes32"),
    _arg("sourceId", "bytes32"),
    _arg("votingRound", "uint64"),
    _arg("lowestUsedTimestamp", "uint64"),
    _arg("requestBody", "tuple", [
        _arg("url", "string"),
        _arg("httpMethod", "string"),
        _arg("headers", "string"),
        _arg("queryParams", "string"),
        _arg("body", "string"),
        _arg("postProcessJq", "string"),
        _arg("abiSignature", "string"),
    ]),
    _arg("responseBody", "tuple", [_arg("abiEncodedData", "bytes")]),
]

_FEED_DATA = [
    _arg("votingRoundId", "uint32"),
    _arg("id", "bytes21"),
    _arg("value", "int32"),
    _arg("turnoutBIPS", "uint16"),
    _arg("decimals", "int8"),
]


def proof_struct(response_components):
    """Proof {bytes32[] merkleProof; Response data} as an ABI input."""
    return _arg("_proof", "tuple", [
        _arg("merkleProof", "bytes32[]"),
        _arg("data", "tuple", response_components),
    ])


FDC_VERIFICATION_ABI = [
    _fn("verifyEVMTransaction", [proof_struct(_EVM_TRANSACTION_RESPONSE)], [_arg("_proved", "bool")]),
    _fn("verifyWeb2Json", [proof_struct(_WEB2JSON_RESPONSE)], [_arg("_proved", "bool")]),
]

FTSO_V2_ABI = [
    _fn("verifyFeedData", [_arg("_feedData", "tuple", [
        _arg("proof", "bytes32[]"),
        _arg("body", "tuple", _FEED_DATA),
    ])], [_arg("", "bool")]),
]


def consumer_entry_abi(function_name: str, response_components):
    """ABI of a consumer entry point taking a single Proof struct, e.g. resolveMarket."""
    return [_fn(function_name, [proof_struct(response_components)], [], mutability="nonpayable")]


RESPONSE_COMPONENTS = {
    "EVMTransaction": _EVM_TRANSACTION_RESPONSE,
    "Web2Json": _WEB2JSON_RESPONSE,
    "FeedData": _FEED_DATA,
}

CONTRACT_ABIS = {
    "FdcHub": FDC_HUB_ABI,
    "FdcRequestFeeConfigurations": FDC_REQUEST_FEE_CONFIGURATIONS_ABI,
    "FlareSystemsManager": FLARE_SYSTEMS_MANAGER_ABI,
    "Relay": RELAY_ABI,
    "FdcVerification": FDC_VERIFICATION_ABI,
    "FtsoV2": FTSO_V2_ABI,
}

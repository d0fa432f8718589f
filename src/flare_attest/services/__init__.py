"""Pipeline stages: encode, submit, search, verify, decode."""
from .contracts import FlareContracts, connect
from .encoder import RequestEncoder
from .hub import HubSubmitter, Submission
from .da_layer import DALayerClient
from .rounds import RoundSearchPolicy
from .retriever import ProofRetriever
from .verifier import (
    OnChainProofVerifier,
    MerkleProofVerifier,
    RelayRootProvider,
    require_verified,
)
from .decoder import PayloadDecoder

__all__ = [
    'FlareContracts',
    'connect',
    'RequestEncoder',
    'HubSubmitter',
    'Submission',
    'DALayerClient',
    'RoundSearchPolicy',
    'ProofRetriever',
    'OnChainProofVerifier',
    'MerkleProofVerifier',
    'RelayRootProvider',
    'require_verified',
    'PayloadDecoder',
]

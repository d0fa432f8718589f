"""
Pipeline configuration.

One immutable PipelineConfig is built at pipeline start (usually from the
environment) and passed to every component. Nothing reads os.environ later.
"""

import os
from dataclasses import dataclass, field, replace
from typing import FrozenSet, Optional

from dotenv import load_dotenv

from .networks import get_network_config, resolve_network


BACKOFF_MODES = ("fixed", "exponential")


@dataclass(frozen=True)
class BackoffPolicy:
    """Delay between proof retrieval attempts."""
    mode: str = "fixed"
    initial_seconds: float = 10.0
    max_seconds: float = 60.0
    multiplier: float = 2.0

    def __post_init__(self):
        if self.mode not in BACKOFF_MODES:
            raise ValueError(f"Unknown backoff mode: {self.mode}. Supported: {list(BACKOFF_MODES)}")
        if self.initial_seconds < 0 or self.max_seconds < 0:
            raise ValueError("Backoff delays must be non-negative")

    def delay(self, attempt_index: int) -> float:
        """Seconds to wait after the attempt with this 0-based index."""
        if self.mode == "fixed":
            return self.initial_seconds
        delay = self.initial_seconds
        for _ in range(attempt_index):
            if delay >= self.max_seconds or delay == 0:
                break
            delay *= self.multiplier
        return min(delay, self.max_seconds)


@dataclass(frozen=True)
class PipelineConfig:
    network: str
    rpc_url: str
    da_layer_url: str
    verifier_url: str
    web2json_verifier_url: str
    explorer_url: str = ""
    da_api_key: Optional[str] = field(default=None, repr=False)
    verifier_api_key: Optional[str] = field(default=None, repr=False)
    private_key: Optional[str] = field(default=None, repr=False)
    max_attempts: int = 5
    backoff: BackoffPolicy = field(default_factory=BackoffPolicy)
    request_timeout: float = 30.0
    finalization_poll_attempts: int = 20
    finalization_poll_seconds: float = 30.0
    not_ready_statuses: FrozenSet[int] = frozenset({404, 425, 500, 503})
    cache_dir: str = "cache"

    def validate(self) -> "PipelineConfig":
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.finalization_poll_attempts < 1:
            raise ValueError("finalization_poll_attempts must be >= 1")
        if not self.da_layer_url:
            raise ValueError("DA layer URL is not set")
        return self

    def with_overrides(self, **overrides) -> "PipelineConfig":
        return replace(self, **overrides).validate()

    @classmethod
    def for_network(cls, network: Optional[str] = None, **overrides) -> "PipelineConfig":
        """Config with the public endpoints of a network and no credentials."""
        network = resolve_network(network)
        net = get_network_config(network)
        config = cls(
            network=network,
            rpc_url=net["rpc_url"],
            da_layer_url=net["da_layer_url"],
            verifier_url=net["verifier_url"],
            web2json_verifier_url=net["web2json_verifier_url"],
            explorer_url=net["explorer_url"],
        )
        return config.with_overrides(**overrides) if overrides else config.validate()

    @classmethod
    def from_env(cls, network: Optional[str] = None, **overrides) -> "PipelineConfig":
        """
        Build the config from environment variables (.env is loaded first).

        Args:
            network: Network ID; defaults to FLARE_NETWORK or coston2
            **overrides: Field values that win over the environment

        Returns:
            Validated PipelineConfig
        """
        load_dotenv()

        network = resolve_network(network or os.getenv("FLARE_NETWORK") or None)
        net = get_network_config(network)

        backoff = BackoffPolicy(
            mode=os.getenv("RETRY_BACKOFF_MODE", "fixed"),
            initial_seconds=float(os.getenv("RETRY_BACKOFF_SECONDS", "10")),
            max_seconds=float(os.getenv("RETRY_BACKOFF_MAX_SECONDS", "60")),
        )

        values = dict(
            network=network,
            rpc_url=os.getenv("FLARE_RPC_URL", net["rpc_url"]),
            da_layer_url=os.getenv("DA_LAYER_URL", net["da_layer_url"]),
            verifier_url=os.getenv("VERIFIER_URL", net["verifier_url"]),
            web2json_verifier_url=os.getenv("WEB2JSON_VERIFIER_URL", net["web2json_verifier_url"]),
            explorer_url=net["explorer_url"],
            da_api_key=os.getenv("DA_LAYER_API_KEY") or None,
            verifier_api_key=os.getenv("VERIFIER_API_KEY") or None,
            private_key=os.getenv("PRIVATE_KEY") or None,
            max_attempts=int(os.getenv("ROUND_RETRY_ATTEMPTS", "5")),
            backoff=backoff,
            request_timeout=float(os.getenv("REQUEST_TIMEOUT", "30")),
            finalization_poll_attempts=int(os.getenv("FINALIZATION_POLL_ATTEMPTS", "20")),
            finalization_poll_seconds=float(os.getenv("FINALIZATION_POLL_SECONDS", "30")),
            cache_dir=os.getenv("CACHE_DIR", "cache"),
        )
        values.update(overrides)
        return cls(**values).validate()

    def round_explorer_url(self, round_id: int) -> str:
        """Systems explorer page for an FDC voting round."""
        return f"{self.explorer_url}voting-round/{round_id}?tab=fdc"

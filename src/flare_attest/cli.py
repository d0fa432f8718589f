"""
CLI for the Flare attestation pipeline

Usage:
    flare-attest --latest-round                 # Show the DA layer's latest voting round
    flare-attest --feed FLR/USD                 # Fetch, verify and decode a feed value
    flare-attest --evm-tx <HASH> --chain ETH    # Attest an EVM transaction end to end
    flare-attest --stats                        # Show submission statistics
    flare-attest --history                      # Show submission history
"""

import argparse
import sys

from dotenv import load_dotenv

load_dotenv()


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Flare attestation client - request, retrieve and verify FDC/FTSO proofs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  flare-attest --latest-round                       Latest voting round
  flare-attest --feed BTC/USD --local-verify        Feed proof, verified against Relay roots
  flare-attest --evm-tx 0x7c42... --chain ETH       Full FDC flow for a transaction
  flare-attest --stats                              Submission statistics
        """,
    )
    parser.add_argument("--network", help="Network ID (default: FLARE_NETWORK or coston2)")
    parser.add_argument("--latest-round", action="store_true", help="Show the latest voting round")
    parser.add_argument("--feed", metavar="NAME", help="Feed name or 0x feed id to prove")
    parser.add_argument("--evm-tx", metavar="HASH", help="Transaction hash to attest")
    parser.add_argument("--chain", default="ETH", help="Source chain of --evm-tx (default: ETH)")
    parser.add_argument("--local-verify", action="store_true",
                        help="Verify Merkle proofs locally against Relay roots")
    parser.add_argument("--stats", action="store_true", help="Show submission statistics")
    parser.add_argument("--history", action="store_true", help="Show submission history")

    args = parser.parse_args()

    from .config import PipelineConfig, source_id_for
    from .errors import AttestationError
    from .models import AttestationSpec
    from .pipeline import AttestationPipeline
    from .services.da_layer import DALayerClient
    from .utils.feeds import feed_name, resolve_feed_id
    from .utils.store import SubmissionStore

    config = PipelineConfig.from_env(network=args.network)

    # --stats: Show submission statistics
    if args.stats:
        stats = SubmissionStore(cache_dir=config.cache_dir).get_stats()
        print("=" * 60)
        print("Submission Statistics")
        print("=" * 60)
        print(f"Total submitted:  {stats['total_submitted']}")
        print(f"Unconfirmed:      {stats['unconfirmed']}")
        print(f"Pending:          {stats['pending']}")
        print(f"Proved:           {stats['proved']}")
        print(f"Failed:           {stats['failed']}")
        print(f"Proof rate:       {stats['proof_rate']:.1%}")
        print("=" * 60)
        return

    # --history: Show submission history
    if args.history:
        history = SubmissionStore(cache_dir=config.cache_dir).get_history(limit=50)
        print("=" * 80)
        print("Submission History")
        print("=" * 80)
        for h in history:
            print(f"{h['submitted_at'][:19]} | {h['status'].upper():10} | "
                  f"{h['attestation_type']:15} | round {h['round_id'] if h['round_id'] is not None else '?'}")
            print(f"  Tx: {h['tx_hash']}")
            if h["error"]:
                print(f"  Error: {h['error']}")
        return

    print("=" * 60)
    print("Flare Attestation Client")
    print("=" * 60)
    print(f"Network: {config.network}")
    print(f"DA Layer: {config.da_layer_url}")
    print(f"Max attempts: {config.max_attempts}, backoff: {config.backoff.mode} "
          f"{config.backoff.initial_seconds}s")
    print("=" * 60)

    if args.latest_round:
        DALayerClient(config).latest_round_id()
        return

    if not (args.feed or args.evm_tx):
        parser.print_help()
        return

    pipeline = AttestationPipeline.from_config(config, local_verification=args.local_verify)

    if args.feed:
        spec = AttestationSpec.feed_data([resolve_feed_id(args.feed)])
    else:
        spec = AttestationSpec.evm_transaction(
            args.evm_tx, source_id=source_id_for(config.network, args.chain)
        )

    try:
        lifecycle = pipeline.run(spec)
    except AttestationError as e:
        print(f"\n[!] Attestation failed: {e}")
        if e.retryable:
            print("    The round may still finalize; run the same command again later.")
        sys.exit(1)

    payload = lifecycle.payload
    print(f"\n{'=' * 60}")
    print("ATTESTATION RESULT")
    print("=" * 60)
    print(f"Round: {lifecycle.proof.round_id}")
    if args.feed:
        print(f"Feed: {feed_name(payload.feed_id)}")
        print(f"Value: {payload.price}")
        print(f"Turnout: {payload.turnout_bips / 100:.2f}%")
    else:
        print(f"Block: {payload.block_number}")
        print(f"Status: {payload.status}")
        print(f"Events: {len(payload.events)}")
    print("=" * 60)


if __name__ == "__main__":
    main()

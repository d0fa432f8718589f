"""Signed transaction helper shared by the hub submitter and consumer clients."""

from typing import Any, Callable, Optional, Tuple

from eth_account import Account
from web3 import Web3


DEFAULT_GAS_LIMIT = 500000


def load_account(private_key: str):
    """Account from a private key (with or without 0x prefix)."""
    if not private_key:
        raise ValueError("PRIVATE_KEY is not configured")
    if not private_key.startswith('0x'):
        private_key = '0x' + private_key
    return Account.from_key(private_key)


def send_transaction(
    w3: Web3,
    contract_call,
    account,
    value: int = 0,
    on_sent: Optional[Callable[[str], None]] = None,
) -> Tuple[str, Any]:
    """
    Build, sign and send a contract call, then wait for the receipt.

    Args:
        w3: Web3 instance
        contract_call: Bound contract function, e.g. hub.functions.requestAttestation(data)
        account: LocalAccount that signs and pays
        value: Native value to attach (wei)
        on_sent: Called with the tx hash once it is broadcast, before the
            receipt wait

    Returns:
        (tx_hash hex, receipt). Callers check receipt status.
    """
    tx = contract_call.build_transaction({
        'from': account.address,
        'nonce': w3.eth.get_transaction_count(account.address),
        'gasPrice': w3.eth.gas_price,
        'value': value,
    })

    try:
        gas_estimate = w3.eth.estimate_gas(tx)
        tx['gas'] = gas_estimate + 10000  # Add buffer
    except Exception as e:
        # A revert shows up here first; the receipt status confirms it.
        print(f"[!] Gas estimation failed: {e}. Using default gas limit.")
        tx['gas'] = DEFAULT_GAS_LIMIT

    signed_tx = account.sign_transaction(tx)
    tx_hash = w3.eth.send_raw_transaction(signed_tx.raw_transaction)

    tx_hex = tx_hash.hex() if hasattr(tx_hash, 'hex') else str(tx_hash)
    if not tx_hex.startswith('0x'):
        tx_hex = '0x' + tx_hex
    if on_sent is not None:
        on_sent(tx_hex)

    receipt = w3.eth.wait_for_transaction_receipt(tx_hash)
    return tx_hex, receipt

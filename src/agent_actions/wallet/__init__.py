"""Wallet capability for agent actions.

A wallet is a signing identity shared by every action running against one
agent context. Two backends ship here: a local eth-account keypair
(optionally loaded from an encrypted keystore) and a remote HTTP signer.
"""

from agent_actions.wallet.base import Address, Signature, SignedTransaction, Wallet
from agent_actions.wallet.keypair import KeypairWallet
from agent_actions.wallet.remote import RemoteSignerWallet

__all__ = [
    "Address",
    "KeypairWallet",
    "RemoteSignerWallet",
    "Signature",
    "SignedTransaction",
    "Wallet",
]

"""Wallet collaborators: address, balance, and balance refresh."""

from dca_bot.wallet.client import TransactionSender, WalletClient
from dca_bot.wallet.paper_wallet import PaperWallet

__all__ = ["PaperWallet", "TransactionSender", "WalletClient"]

"""Wallet server placed next to monero-wallet-rpc."""

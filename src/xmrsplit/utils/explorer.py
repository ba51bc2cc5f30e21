"""Monero block explorer links."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ExplorerConfig:
    name: str
    base_url: str
    tx_path: str


MONERO_EXPLORERS: dict[str, ExplorerConfig] = {
    "xmrchain": ExplorerConfig("XMRChain.net", "https://xmrchain.net", "/tx/"),
    "localmonero": ExplorerConfig(
        "LocalMonero Explorer", "https://localmonero.co/blocks", "/search/"
    ),
    "moneroscan": ExplorerConfig("MoneroScan", "https://moneroscan.io", "/tx/"),
}

DEFAULT_EXPLORER = "xmrchain"


def _get(explorer_key: str) -> ExplorerConfig:
    return MONERO_EXPLORERS.get(explorer_key, MONERO_EXPLORERS[DEFAULT_EXPLORER])


def get_explorer_url(tx_hash: str, explorer_key: str = DEFAULT_EXPLORER) -> str:
    """Explorer URL for a transaction; unknown keys use the default explorer."""
    explorer = _get(explorer_key)
    return f"{explorer.base_url}{explorer.tx_path}{tx_hash}"


def get_explorer_name(explorer_key: str = DEFAULT_EXPLORER) -> str:
    return _get(explorer_key).name

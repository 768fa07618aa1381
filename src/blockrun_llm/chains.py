from typing import Optional

from typing_extensions import TypedDict

# Base mainnet, the chain the BlockRun gateway settles on
BASE_CHAIN_ID = 8453
BASE_NETWORK = "eip155:8453"

# USDC contract on Base
USDC_BASE = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"

# EIP-712 domain used when the challenge does not name one
DEFAULT_TOKEN_NAME = "USD Coin"
DEFAULT_TOKEN_VERSION = "2"

# Legacy (x402 v1) human readable network names
NETWORK_TO_ID = {
    "base": 8453,
    "base-sepolia": 84532,
    "avalanche": 43114,
    "avalanche-fuji": 43113,
}


class KnownToken(TypedDict):
    human_name: str
    address: str
    name: str
    decimals: int
    version: str


KNOWN_TOKENS: dict[int, list[KnownToken]] = {
    8453: [
        {
            "human_name": "usdc",
            "address": USDC_BASE,
            "name": "USD Coin",  # needs to be exactly what is returned by name() on contract
            "decimals": 6,
            "version": "2",
        }
    ],
    84532: [
        {
            "human_name": "usdc",
            "address": "0x036CbD53842c5426634e7929541eC2318f3dCF7e",
            "name": "USDC",
            "decimals": 6,
            "version": "2",
        }
    ],
}


def get_chain_id(network: str) -> int:
    """Get the numeric chain ID for a network identifier.

    Accepts CAIP-2 identifiers (``eip155:8453``), bare numeric chain IDs and the
    legacy human readable names. An empty network means Base mainnet.

    Raises:
        ValueError: If the network is not recognised.
    """
    if not network:
        return BASE_CHAIN_ID

    if network.startswith("eip155:"):
        try:
            return int(network.split(":", 1)[1])
        except ValueError as e:
            raise ValueError(f"Invalid CAIP-2 network format: {network}") from e

    if network.isdigit():
        return int(network)

    if network not in NETWORK_TO_ID:
        raise ValueError(f"Unsupported network: {network}")
    return NETWORK_TO_ID[network]


def get_known_token(chain_id: int, address: str) -> Optional[KnownToken]:
    """Look up a token by contract address, case-insensitively."""
    for token in KNOWN_TOKENS.get(chain_id, []):
        if token["address"].lower() == address.lower():
            return token
    return None

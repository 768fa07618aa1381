import base64
import json

import pytest
from eth_account import Account

from blockrun_llm.clients.base import x402Client

# Well-known development key (Hardhat/Anvil account #0)
TEST_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"

PAY_TO = "0xABCDEF0123456789ABCDEF0123456789ABCDEF01"


@pytest.fixture
def private_key():
    return TEST_PRIVATE_KEY


@pytest.fixture
def address():
    return TEST_ADDRESS


@pytest.fixture
def pay_to():
    return PAY_TO


@pytest.fixture
def account():
    return Account.from_key(TEST_PRIVATE_KEY)


@pytest.fixture
def client(account):
    return x402Client(account)


@pytest.fixture
def challenge():
    """Payment-required document as a gateway would send it."""
    return {
        "x402Version": 2,
        "accepts": [
            {
                "scheme": "exact",
                "network": "eip155:8453",
                "amount": "500000",
                "asset": "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
                "payTo": PAY_TO,
                "maxTimeoutSeconds": 300,
                "extra": {"name": "USD Coin", "version": "2"},
            }
        ],
        "resource": {
            "url": "https://blockrun.ai/api/v1/chat/completions",
            "description": "Chat completion",
            "mimeType": "application/json",
        },
    }


@pytest.fixture
def challenge_header(challenge):
    return base64.b64encode(json.dumps(challenge).encode()).decode()

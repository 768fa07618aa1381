"""Local wallet management and funding helpers.

Keys are stored as plain hex in files readable only by the owner. The
directory is always passed in explicitly; ``WalletStore()`` defaults to
``~/.blockrun``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Union

from eth_account import Account

from blockrun_llm.chains import BASE_CHAIN_ID, USDC_BASE
from blockrun_llm.config import WALLET_KEY_ENV_VARS
from blockrun_llm.exceptions import ValidationError
from blockrun_llm.spending import MICRO_UNITS_PER_USD

DEFAULT_WALLET_DIR = Path.home() / ".blockrun"
SESSION_FILE_NAME = ".session"
LEGACY_FILE_NAME = "wallet.key"


@dataclass(frozen=True)
class WalletInfo:
    private_key: str
    address: str
    is_new: bool

    def __repr__(self) -> str:
        return f"WalletInfo(address={self.address!r}, is_new={self.is_new})"


@dataclass(frozen=True)
class PaymentLinks:
    basescan: str
    wallet_link: str
    ethereum: str
    blockrun: str


def create_wallet() -> tuple[str, str]:
    """Create a new wallet, returning (address, 0x-prefixed private key)."""
    account = Account.create()
    return account.address, "0x" + bytes(account.key).hex()


def get_address_from_key(private_key: str) -> str:
    """Derive the checksummed address of a hex private key, with or without 0x."""
    key = private_key.strip()
    if not key.startswith("0x"):
        key = "0x" + key
    try:
        return Account.from_key(key).address
    except (ValueError, TypeError) as e:
        raise ValidationError("privateKey", f"invalid private key: {e}") from e


def _key_from_env(environ: Optional[Mapping[str, str]]) -> Optional[str]:
    env = os.environ if environ is None else environ
    for name in WALLET_KEY_ENV_VARS:
        value = env.get(name)
        if value:
            return value
    return None


class WalletStore:
    """Reads and writes the wallet key files of one directory."""

    def __init__(self, directory: Union[str, Path, None] = None) -> None:
        self.directory = Path(directory) if directory is not None else DEFAULT_WALLET_DIR

    @property
    def session_file(self) -> Path:
        return self.directory / SESSION_FILE_NAME

    @property
    def legacy_file(self) -> Path:
        return self.directory / LEGACY_FILE_NAME

    def save(self, private_key: str) -> Path:
        """Write the key to the session file, readable by the owner only."""
        self.directory.mkdir(mode=0o700, parents=True, exist_ok=True)
        fd = os.open(self.session_file, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(private_key)
        self.session_file.chmod(0o600)
        return self.session_file

    def load(self) -> Optional[str]:
        """Load the stored key, preferring the session file over the legacy one."""
        for path in (self.session_file, self.legacy_file):
            if not path.is_file():
                continue
            key = path.read_text(encoding="utf-8").strip()
            if key:
                return key
        return None

    def get_or_create(self, environ: Optional[Mapping[str, str]] = None) -> WalletInfo:
        """Resolve the wallet to use, creating and saving one if none exists.

        Priority: BLOCKRUN_WALLET_KEY, BASE_CHAIN_WALLET_KEY, the session
        file, the legacy wallet.key file, then a new wallet.
        """
        key = _key_from_env(environ) or self.load()
        if key:
            return WalletInfo(private_key=key, address=get_address_from_key(key), is_new=False)

        address, private_key = create_wallet()
        self.save(private_key)
        return WalletInfo(private_key=private_key, address=address, is_new=True)

    def get_address(self, environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
        """Return the wallet address without exposing the key, or None."""
        key = _key_from_env(environ) or self.load()
        return get_address_from_key(key) if key else None


def get_eip681_uri(address: str, amount_usdc: float) -> str:
    """EIP-681 URI requesting a USDC transfer on Base to ``address``."""
    amount = int(round(amount_usdc * MICRO_UNITS_PER_USD))
    return f"ethereum:{USDC_BASE}@{BASE_CHAIN_ID}/transfer?address={address}&uint256={amount}"


def get_payment_links(address: str) -> PaymentLinks:
    return PaymentLinks(
        basescan=f"https://basescan.org/address/{address}",
        wallet_link=f"ethereum:{USDC_BASE}@{BASE_CHAIN_ID}/transfer?address={address}",
        ethereum=f"ethereum:{address}@{BASE_CHAIN_ID}",
        blockrun=f"https://blockrun.ai/fund?address={address}",
    )


def format_wallet_created_message(address: str) -> str:
    links = get_payment_links(address)
    return f"""
I'm your BlockRun Agent! I can access GPT-4, Grok, image generation, and more.

Please send $1-5 USDC on Base to start:

{address}

What is Base? Base is Coinbase's blockchain network.
You can buy USDC on Coinbase and send it directly to me.

What $1 USDC gets you:
- ~1,000 GPT-4o calls
- ~100 image generations
- ~10,000 DeepSeek calls

Quick links:
- Check my balance: {links.basescan}
- Get USDC: https://www.coinbase.com or https://bridge.base.org

Questions? care@blockrun.ai

Key stored securely in ~/.blockrun/
Your private key never leaves your machine - only signatures are sent.
"""


def format_needs_funding_message(address: str) -> str:
    links = get_payment_links(address)
    return f"""
I've run out of funds! Please send more USDC on Base to continue helping you.

Send to my address:
{address}

Check my balance: {links.basescan}

What $1 USDC gets you: ~1,000 GPT-4o calls or ~100 images.
Questions? care@blockrun.ai

Your private key never leaves your machine - only signatures are sent.
"""


def format_funding_message_compact(address: str) -> str:
    links = get_payment_links(address)
    return (
        f"I need a little top-up to keep helping you! Send USDC on Base to: {address}\n"
        f"Check my balance: {links.basescan}"
    )

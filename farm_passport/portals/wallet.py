"""
Farmer wallet credential.

The private key lives only in process memory for the duration of the farmer
portal session. It is never written to the session database or the logs.
"""

import logging
import re
from dataclasses import dataclass, field

from eth_account import Account

from ..api.errors import FormValidationError

logger = logging.getLogger(__name__)

_HEX_KEY = re.compile(r"[0-9a-fA-F]{64}")


def normalize_private_key(raw: str) -> str:
    """Return the key as ``0x`` + 64 hex chars; the ``0x`` prefix is optional on input."""
    key = (raw or "").strip().replace(" ", "").replace("\n", "").replace("\r", "")
    hexpart = key[2:] if key.lower().startswith("0x") else key
    if len(hexpart) != 64:
        raise FormValidationError(
            f"Private key must be 64 hex characters; got {len(hexpart)}", "private_key"
        )
    if not _HEX_KEY.fullmatch(hexpart):
        raise FormValidationError("Private key contains non-hex characters", "private_key")
    return "0x" + hexpart


@dataclass(frozen=True)
class FarmerCredential:
    private_key: str = field(repr=False)
    address: str

    @classmethod
    def generate(cls) -> "FarmerCredential":
        account = Account.create()
        logger.info(f"Generated farmer wallet {account.address}")
        return cls(private_key="0x" + bytes(account.key).hex(), address=account.address)

    @classmethod
    def from_private_key(cls, raw: str) -> "FarmerCredential":
        key = normalize_private_key(raw)
        try:
            account = Account.from_key(key)
        except ValueError as e:
            raise FormValidationError("Invalid private key", "private_key") from e
        return cls(private_key=key, address=account.address)

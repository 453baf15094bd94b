"""Type definitions for ocnregistry.

This module contains NewType definitions for domain-specific values that are
passed around as plain strings or bytes.
"""

from typing import NewType

AddressHex = NewType("AddressHex", str)
"""EIP-55 checksummed Ethereum address (0x-prefixed, 42 characters)."""

Digest = NewType("Digest", bytes)
"""32-byte keccak-256 digest of an encoded operation."""

ZERO_ADDRESS = AddressHex("0x0000000000000000000000000000000000000000")
"""Ledger sentinel for an absent listing."""

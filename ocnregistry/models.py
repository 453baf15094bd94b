"""Data model for ocnregistry.

This module contains the registry listings (nodes and OCPI parties), the
closed role/module enums, recoverable signatures and the typed shapes of raw
ledger responses.
"""

from enum import IntEnum
from typing import Any

import msgspec

from .errors import InvalidArgument
from .types import ZERO_ADDRESS, AddressHex
from .validation import from_ocpi_bytes, verify_address


class IndexedEnum(IntEnum):
    """Enum stored on-chain as its integer index."""

    @classmethod
    def from_index(cls, index: int) -> "IndexedEnum":
        try:
            return cls(index)
        except ValueError as e:
            raise InvalidArgument(f"Invalid {cls.__name__} index: {index!r}") from e

    @classmethod
    def from_name(cls, name: str) -> "IndexedEnum":
        try:
            return cls[name.upper()]
        except (KeyError, AttributeError) as e:
            raise InvalidArgument(f"Invalid {cls.__name__} name: {name!r}") from e

    @classmethod
    def coerce(cls, value: "int | str | IndexedEnum") -> "IndexedEnum":
        """Accept a member, its index or its name."""
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            raise InvalidArgument(f"Invalid {cls.__name__}: {value!r}")
        if isinstance(value, int):
            return cls.from_index(value)
        if isinstance(value, str):
            return cls.from_name(value)
        raise InvalidArgument(f"Invalid {cls.__name__}: {value!r}")


class Role(IndexedEnum):
    """OCPI 2.2 party roles."""

    CPO = 0
    EMSP = 1
    HUB = 2
    NAP = 3
    NSP = 4
    OTHER = 5
    SCSP = 6


class Module(IndexedEnum):
    """OCPI modules a party can advertise as sender or receiver interface."""

    CDRS = 0
    CHARGING_PROFILES = 1
    COMMANDS = 2
    LOCATIONS = 3
    SESSIONS = 4
    TARIFFS = 5
    TOKENS = 6


class Node(msgspec.Struct, frozen=True):
    """A registry node listing.

    Attributes:
        operator: Checksummed address owning the listing
        url: Origin of the node's public endpoint

    """

    operator: AddressHex
    url: str


class PartyModules(msgspec.Struct, frozen=True):
    """Interface modules implemented by a party."""

    sender: list[Module] = msgspec.field(default_factory=list)
    receiver: list[Module] = msgspec.field(default_factory=list)


class PartyDetails(msgspec.Struct, frozen=True):
    """Full registry listing of an OCPI party.

    Attributes:
        country_code: OCPI country_code (ISO-3166 alpha-2)
        party_id: OCPI party_id (ISO-15118)
        address: Wallet address of the party
        roles: Roles implemented by the party
        modules: Sender and receiver interface modules
        node: The node the party is connected to

    """

    country_code: str
    party_id: str
    address: AddressHex
    roles: list[Role]
    modules: PartyModules
    node: Node


class Signature(msgspec.Struct, frozen=True):
    """Recoverable secp256k1 signature."""

    v: int
    r: bytes
    s: bytes

    def __post_init__(self) -> None:
        if len(self.r) != 32 or len(self.s) != 32:
            raise InvalidArgument(
                f"Signature components must be 32 bytes, got r={len(self.r)} s={len(self.s)}"
            )

    def to_bytes(self) -> bytes:
        """Return the 65-byte ``r || s || v`` form."""
        return self.r + self.s + bytes([self.v])

    @classmethod
    def from_bytes(cls, data: bytes) -> "Signature":
        if len(data) != 65:
            raise InvalidArgument(f"Signature must be 65 bytes, got {len(data)}")
        v = data[64]
        if v < 27:
            v += 27
        return cls(v=v, r=data[:32], s=data[32:64])

    def to_contract_args(self) -> tuple[int, bytes, bytes]:
        return self.v, self.r, self.s


class TransactionReceipt(msgspec.Struct, frozen=True):
    """Receipt of an included registry transaction."""

    transaction_hash: str
    block_number: int
    status: int
    gas_used: int
    sender: AddressHex


# Raw ledger responses. Fields follow the contract's return order.


class RawPartyByAddress(msgspec.Struct, array_like=True, frozen=True):
    """Return value of ``getPartyDetailsByAddress``."""

    country_code: bytes
    party_id: bytes
    roles: list[int]
    modules_sender: list[int]
    modules_receiver: list[int]
    operator_address: str
    operator_domain: str


class RawPartyByOcpi(msgspec.Struct, array_like=True, frozen=True):
    """Return value of ``getPartyDetailsByOcpi``."""

    party_address: str
    roles: list[int]
    modules_sender: list[int]
    modules_receiver: list[int]
    operator_address: str
    operator_domain: str


def decode_raw(raw: Any, shape: type[msgspec.Struct]) -> Any:
    """Convert a ledger response tuple into its typed shape."""
    try:
        return msgspec.convert(raw, shape)
    except msgspec.ValidationError as e:
        raise InvalidArgument(f"Unexpected {shape.__name__} response: {e}") from e


def is_absent(operator_address: str) -> bool:
    """Check the ledger's zero-address sentinel."""
    return operator_address.lower() == ZERO_ADDRESS


def to_party_details(
    *,
    country_code: bytes,
    party_id: bytes,
    address: str,
    roles: list[int],
    modules_sender: list[int],
    modules_receiver: list[int],
    operator_address: str,
    operator_domain: str,
) -> PartyDetails | None:
    """Build ``PartyDetails`` from decoded ledger fields.

    Returns None when the listing is absent (zero operator address).
    """
    if is_absent(operator_address):
        return None

    return PartyDetails(
        country_code=from_ocpi_bytes(country_code),
        party_id=from_ocpi_bytes(party_id),
        address=verify_address(address),
        roles=[Role.from_index(index) for index in roles],
        modules=PartyModules(
            sender=[Module.from_index(index) for index in modules_sender],
            receiver=[Module.from_index(index) for index in modules_receiver],
        ),
        node=Node(operator=verify_address(operator_address), url=operator_domain),
    )

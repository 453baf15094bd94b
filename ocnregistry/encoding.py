"""Canonical encoding and digests of delegated registry operations.

Every operation is serialized with Solidity packed encoding, led by a one
byte operation discriminant:

    SET_NODE           uint8 kind | uint16 len | bytes url
    DELETE_NODE        uint8 kind
    SET_PARTY          uint8 kind | bytes2 country | bytes3 party_id |
                       uint8 n | uint8[n] roles | address operator
    DELETE_PARTY       uint8 kind
    SET_PARTY_MODULES  uint8 kind | uint8 n | uint8[n] sender |
                       uint8 m | uint8[m] receiver

The digest is keccak-256 over the optional signing domain
(``uint256 chain_id | address contract``) followed by the payload.
"""

from collections.abc import Iterable, Sequence
from enum import IntEnum
from typing import Any

import msgspec
from eth_abi.packed import encode_packed
from eth_utils import keccak

from .errors import InvalidArgument
from .models import IndexedEnum, Module, Role
from .types import AddressHex, Digest
from .validation import (
    COUNTRY_CODE_LENGTH,
    PARTY_ID_LENGTH,
    to_ocpi_bytes,
    verify_address,
)

MAX_LIST_LENGTH = 0xFF
MAX_URL_BYTES = 0xFFFF


class OperationKind(IntEnum):
    """Discriminant bound into every delegated operation payload."""

    SET_NODE = 1
    DELETE_NODE = 2
    SET_PARTY = 3
    DELETE_PARTY = 4
    SET_PARTY_MODULES = 5


class SigningDomain(msgspec.Struct, frozen=True):
    """Chain and contract a signature is bound to."""

    chain_id: int
    verifying_contract: AddressHex

    def __post_init__(self) -> None:
        if self.chain_id < 1:
            raise InvalidArgument(f"chain_id must be positive, got {self.chain_id}")
        verify_address(self.verifying_contract)

    def encode(self) -> bytes:
        return encode_packed(
            ["uint256", "address"],
            [self.chain_id, verify_address(self.verifying_contract)],
        )


_ARITY = {
    OperationKind.SET_NODE: 1,
    OperationKind.DELETE_NODE: 0,
    OperationKind.SET_PARTY: 4,
    OperationKind.DELETE_PARTY: 0,
    OperationKind.SET_PARTY_MODULES: 2,
}


def enum_indices(values: Iterable[Any], enum_cls: type[IndexedEnum]) -> list[int]:
    """Validate an enum list and return its on-chain indices in order.

    Raises:
        InvalidArgument: On unknown members, duplicates or too many members

    """
    if isinstance(values, (str, bytes)):
        raise InvalidArgument(f"Expected a list of {enum_cls.__name__}, got {values!r}")

    indices = [int(enum_cls.coerce(value)) for value in values]
    if len(set(indices)) != len(indices):
        raise InvalidArgument(f"Duplicate {enum_cls.__name__} in {indices}")
    if len(indices) > MAX_LIST_LENGTH:
        raise InvalidArgument(f"Too many {enum_cls.__name__} values: {len(indices)}")
    return indices


def _list_fields(indices: Sequence[int]) -> tuple[list[str], list[Any]]:
    types = ["uint8"] * (len(indices) + 1)
    return types, [len(indices), *indices]


def _url_fields(url: str) -> tuple[list[str], list[Any]]:
    if not isinstance(url, str) or not url:
        raise InvalidArgument(f"Invalid url: {url!r}")
    data = url.encode("utf-8")
    if len(data) > MAX_URL_BYTES:
        raise InvalidArgument(f"url too long: {len(data)} bytes")
    return ["uint16", "bytes"], [len(data), data]


def encode_operation(kind: OperationKind, *args: Any) -> bytes:
    """Serialize an operation and its arguments into the canonical payload.

    Args:
        kind: The operation discriminant
        *args: The operation's arguments in contract order

    Returns:
        The packed payload, starting with the discriminant byte

    Raises:
        InvalidArgument: If the arguments do not fit the operation's layout

    """
    try:
        kind = OperationKind(kind)
    except ValueError as e:
        raise InvalidArgument(f"Unknown operation kind: {kind!r}") from e
    if len(args) != _ARITY[kind]:
        raise InvalidArgument(
            f"{kind.name} takes {_ARITY[kind]} arguments, got {len(args)}"
        )

    types: list[str] = ["uint8"]
    values: list[Any] = [int(kind)]

    match kind:
        case OperationKind.SET_NODE:
            url_types, url_values = _url_fields(args[0])
            types += url_types
            values += url_values
        case OperationKind.SET_PARTY:
            country_code, party_id, roles, operator = args
            types += ["bytes2", "bytes3"]
            values += [
                to_ocpi_bytes(country_code, COUNTRY_CODE_LENGTH),
                to_ocpi_bytes(party_id, PARTY_ID_LENGTH),
            ]
            role_types, role_values = _list_fields(enum_indices(roles, Role))
            types += role_types + ["address"]
            values += role_values + [verify_address(operator)]
        case OperationKind.SET_PARTY_MODULES:
            sender, receiver = args
            for modules in (sender, receiver):
                module_types, module_values = _list_fields(enum_indices(modules, Module))
                types += module_types
                values += module_values
        case OperationKind.DELETE_NODE | OperationKind.DELETE_PARTY:
            pass

    return encode_packed(types, values)


def digest(payload: bytes, domain: SigningDomain | None = None) -> Digest:
    """Hash an encoded payload to the 32-byte digest that gets signed."""
    prefix = domain.encode() if domain is not None else b""
    return Digest(keccak(prefix + payload))

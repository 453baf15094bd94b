"""Builders for delegated ("raw") registry operations.

A raw operation is authorized by one party's signature but submitted and
paid for by another wallet (the "spender"). Each builder validates and
normalizes its arguments, encodes them behind the operation discriminant,
signs the digest with the authorizing party's key and returns everything the
contract's ``*Raw`` method needs.

The payloads carry no nonce. Unless the contract enforces single use on its
own, a signed operation can be submitted again later.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from .encoding import OperationKind, SigningDomain, digest, encode_operation, enum_indices
from .models import Module, Role, Signature
from .signer import address_of, sign_digest, verify_signer
from .types import AddressHex, Digest
from .validation import (
    COUNTRY_CODE_LENGTH,
    PARTY_ID_LENGTH,
    normalize_origin,
    to_ocpi_bytes,
    verify_address,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SignedOperation:
    """A delegated operation ready for submission.

    Attributes:
        kind: The operation discriminant
        signer: Address of the authorizing party
        args: Normalized operation arguments in contract order
        signature: Signature over the operation digest
        digest: The signed digest

    """

    kind: OperationKind
    signer: AddressHex
    args: tuple[Any, ...]
    signature: Signature
    digest: Digest

    @property
    def method(self) -> str:
        return _METHODS[self.kind]

    def contract_args(self) -> list[Any]:
        """Arguments for the contract's raw method: signer, args, v, r, s."""
        return [self.signer, *self.args, *self.signature.to_contract_args()]


_METHODS = {
    OperationKind.SET_NODE: "setNodeRaw",
    OperationKind.DELETE_NODE: "deleteNodeRaw",
    OperationKind.SET_PARTY: "setPartyRaw",
    OperationKind.DELETE_PARTY: "deletePartyRaw",
    OperationKind.SET_PARTY_MODULES: "setPartyModulesRaw",
}


def _build(
    kind: OperationKind,
    args: tuple[Any, ...],
    encoded_args: tuple[Any, ...],
    private_key: str | bytes,
    domain: SigningDomain | None,
) -> SignedOperation:
    operation_digest = digest(encode_operation(kind, *encoded_args), domain)
    signature = sign_digest(operation_digest, private_key, operation=_METHODS[kind])
    signer = verify_signer(operation_digest, signature, address_of(private_key))
    logger.debug(f"Built {_METHODS[kind]} for {signer}")
    return SignedOperation(
        kind=kind,
        signer=signer,
        args=args,
        signature=signature,
        digest=operation_digest,
    )


def build_set_node_raw(
    url: str,
    private_key: str | bytes,
    domain: SigningDomain | None = None,
) -> SignedOperation:
    """Authorize creating or updating the signer's node listing.

    The url is reduced to its origin before it is encoded.
    """
    origin = normalize_origin(url)
    return _build(OperationKind.SET_NODE, (origin,), (origin,), private_key, domain)


def build_delete_node_raw(
    private_key: str | bytes,
    domain: SigningDomain | None = None,
) -> SignedOperation:
    """Authorize removing the signer's node listing."""
    return _build(OperationKind.DELETE_NODE, (), (), private_key, domain)


def build_set_party_raw(
    country_code: str,
    party_id: str,
    roles: Sequence[Role | int | str],
    operator: str,
    private_key: str | bytes,
    domain: SigningDomain | None = None,
) -> SignedOperation:
    """Authorize listing the signer as an OCPI party linked to a node operator.

    Args:
        country_code: OCPI "country_code" of party (ISO-3166 alpha-2)
        party_id: OCPI "party_id" of party (ISO-15118)
        roles: Roles implemented by the party
        operator: Operator address of the node used by the party
        private_key: Key of the party being listed
        domain: Optional chain/contract binding for the digest

    Returns:
        The signed operation; ``args`` holds the upper-cased identifiers as
        bytes, role indices and the checksummed operator

    """
    country = to_ocpi_bytes(country_code, COUNTRY_CODE_LENGTH)
    party = to_ocpi_bytes(party_id, PARTY_ID_LENGTH)
    operator = verify_address(operator)
    role_indices = enum_indices(roles, Role)

    return _build(
        OperationKind.SET_PARTY,
        (country, party, role_indices, operator),
        (country.decode("ascii"), party.decode("ascii"), role_indices, operator),
        private_key,
        domain,
    )


def build_delete_party_raw(
    private_key: str | bytes,
    domain: SigningDomain | None = None,
) -> SignedOperation:
    """Authorize removing the signer's party listing."""
    return _build(OperationKind.DELETE_PARTY, (), (), private_key, domain)


def build_set_party_modules_raw(
    sender: Sequence[Module | int | str],
    receiver: Sequence[Module | int | str],
    private_key: str | bytes,
    domain: SigningDomain | None = None,
) -> SignedOperation:
    """Authorize setting the signer's sender and receiver interface modules.

    Empty lists clear previously set modules.
    """
    sender_indices = enum_indices(sender, Module)
    receiver_indices = enum_indices(receiver, Module)
    return _build(
        OperationKind.SET_PARTY_MODULES,
        (sender_indices, receiver_indices),
        (sender_indices, receiver_indices),
        private_key,
        domain,
    )

"""Registry contract client."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Literal

from .encoding import enum_indices
from .errors import NotWritable
from .models import (
    Module,
    Node,
    PartyDetails,
    RawPartyByAddress,
    RawPartyByOcpi,
    Role,
    TransactionReceipt,
    decode_raw,
    is_absent,
    to_party_details,
)
from .operations import (
    SignedOperation,
    build_delete_node_raw,
    build_delete_party_raw,
    build_set_node_raw,
    build_set_party_modules_raw,
    build_set_party_raw,
)
from .signer import address_of
from .transport import Web3Transport
from .types import AddressHex
from .validation import (
    COUNTRY_CODE_LENGTH,
    PARTY_ID_LENGTH,
    normalize_origin,
    to_ocpi_bytes,
    verify_address,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .config import Environment
    from .transport import ReadTransport, WriteTransport

logger = logging.getLogger(__name__)


class Registry:
    """Client for the registry of OCN nodes and OCPI parties.

    Without a signer the client is read-only (``mode == "r"``). With a signer
    it can also send transactions (``mode == "r+w"``); for raw operations the
    configured signer is the "spender" who sends and pays for a transaction
    authorized by another party's key.
    """

    def __init__(
        self,
        environment: Environment,
        signer: str | None = None,
        *,
        read_transport: ReadTransport | None = None,
        write_transport: WriteTransport | None = None,
    ) -> None:
        self._environment = environment
        self._signer_key = signer
        self.address: AddressHex | None = address_of(signer) if signer else None
        self.mode: Literal["r", "r+w"] = "r+w" if signer else "r"

        if read_transport is None or (signer and write_transport is None):
            logger.info(f"connecting to {environment.provider.url}")
            default = Web3Transport(environment)
            read_transport = read_transport or default
            write_transport = write_transport or default

        self._reader = read_transport
        self._writer = write_transport

    @property
    def environment(self) -> Environment:
        return self._environment

    # Nodes

    async def get_node(self, operator: str) -> Node | None:
        """Get the node listing of an operator, or None if not listed."""
        operator = verify_address(operator)
        url = await self._reader.call("getNode", [operator])
        return Node(operator=operator, url=url) if url else None

    async def get_all_nodes(self) -> list[Node]:
        """Get all node listings registered on the contract."""
        operators = await self._reader.call("getNodeOperators", [])
        nodes: list[Node] = []
        for operator in operators:
            if is_absent(operator):
                continue
            node = await self.get_node(operator)
            if node is not None:
                nodes.append(node)
        return nodes

    async def set_node(self, url: str) -> TransactionReceipt:
        """Create or update the signer's node listing with the url's origin."""
        self._verify_writable()
        return await self._submit("setNode", [normalize_origin(url)])

    async def set_node_raw(self, url: str, signer: str) -> TransactionReceipt:
        """Create or update another wallet's node listing using a raw transaction.

        Args:
            url: The node url; only its origin is listed
            signer: Private key of the owner of the listing

        """
        self._verify_writable()
        return await self._submit_raw(
            build_set_node_raw(url, signer, self._environment.signing_domain)
        )

    async def delete_node(self) -> TransactionReceipt:
        """Remove the signer's node listing."""
        self._verify_writable()
        return await self._submit("deleteNode", [])

    async def delete_node_raw(self, signer: str) -> TransactionReceipt:
        """Remove another wallet's node listing using a raw transaction."""
        self._verify_writable()
        return await self._submit_raw(
            build_delete_node_raw(signer, self._environment.signing_domain)
        )

    # Parties

    async def get_party_by_address(self, address: str) -> PartyDetails | None:
        """Get the details of a party by its wallet address, or None if not listed."""
        address = verify_address(address)
        raw: RawPartyByAddress = decode_raw(
            await self._reader.call("getPartyDetailsByAddress", [address]),
            RawPartyByAddress,
        )
        return to_party_details(
            country_code=raw.country_code,
            party_id=raw.party_id,
            address=address,
            roles=raw.roles,
            modules_sender=raw.modules_sender,
            modules_receiver=raw.modules_receiver,
            operator_address=raw.operator_address,
            operator_domain=raw.operator_domain,
        )

    async def get_party_by_ocpi(self, country_code: str, party_id: str) -> PartyDetails | None:
        """Get the details of a party by its OCPI country_code and party_id."""
        country = to_ocpi_bytes(country_code, COUNTRY_CODE_LENGTH)
        party = to_ocpi_bytes(party_id, PARTY_ID_LENGTH)
        raw: RawPartyByOcpi = decode_raw(
            await self._reader.call("getPartyDetailsByOcpi", [country, party]),
            RawPartyByOcpi,
        )
        if is_absent(raw.operator_address):
            return None
        return to_party_details(
            country_code=country,
            party_id=party,
            address=raw.party_address,
            roles=raw.roles,
            modules_sender=raw.modules_sender,
            modules_receiver=raw.modules_receiver,
            operator_address=raw.operator_address,
            operator_domain=raw.operator_domain,
        )

    async def get_all_parties(self) -> list[PartyDetails]:
        """Get all OCPI parties listed on the contract."""
        addresses = await self._reader.call("getParties", [])
        parties: list[PartyDetails] = []
        for address in addresses:
            details = await self.get_party_by_address(address)
            if details is not None:
                parties.append(details)
        return parties

    async def set_party(
        self,
        country_code: str,
        party_id: str,
        roles: Sequence[Role | int | str],
        operator: str,
    ) -> TransactionReceipt:
        """List the signer as an OCPI party, linking it to a node operator."""
        self._verify_writable()
        args = [
            to_ocpi_bytes(country_code, COUNTRY_CODE_LENGTH),
            to_ocpi_bytes(party_id, PARTY_ID_LENGTH),
            enum_indices(roles, Role),
            verify_address(operator),
        ]
        return await self._submit("setParty", args)

    async def set_party_raw(
        self,
        country_code: str,
        party_id: str,
        roles: Sequence[Role | int | str],
        operator: str,
        signer: str,
    ) -> TransactionReceipt:
        """List another wallet as an OCPI party using a raw transaction."""
        self._verify_writable()
        return await self._submit_raw(
            build_set_party_raw(
                country_code,
                party_id,
                roles,
                operator,
                signer,
                self._environment.signing_domain,
            )
        )

    async def set_party_modules(
        self,
        sender: Sequence[Module | int | str],
        receiver: Sequence[Module | int | str],
    ) -> TransactionReceipt:
        """Set the signer's sender and receiver interface modules.

        Empty lists remove previously set modules.
        """
        self._verify_writable()
        return await self._submit(
            "setPartyModules",
            [enum_indices(sender, Module), enum_indices(receiver, Module)],
        )

    async def set_party_modules_raw(
        self,
        sender: Sequence[Module | int | str],
        receiver: Sequence[Module | int | str],
        signer: str,
    ) -> TransactionReceipt:
        """Set another wallet's interface modules using a raw transaction."""
        self._verify_writable()
        return await self._submit_raw(
            build_set_party_modules_raw(
                sender,
                receiver,
                signer,
                self._environment.signing_domain,
            )
        )

    async def delete_party(self) -> TransactionReceipt:
        """Remove the signer's party listing."""
        self._verify_writable()
        return await self._submit("deleteParty", [])

    async def delete_party_raw(self, signer: str) -> TransactionReceipt:
        """Remove another wallet's party listing using a raw transaction."""
        self._verify_writable()
        return await self._submit_raw(
            build_delete_party_raw(signer, self._environment.signing_domain)
        )

    # Helpers

    def _verify_writable(self) -> None:
        if self.mode != "r+w" or self._writer is None or self._signer_key is None:
            raise NotWritable("No signer provided. Unable to send transaction.")

    async def _submit(self, method: str, args: list[Any]) -> TransactionReceipt:
        self._verify_writable()
        logger.debug(f"Submitting {method} from {self.address}")
        return await self._writer.submit(method, args, self._signer_key)

    async def _submit_raw(self, operation: SignedOperation) -> TransactionReceipt:
        logger.info(f"Submitting {operation.method} on behalf of {operation.signer}")
        return await self._submit(operation.method, operation.contract_args())

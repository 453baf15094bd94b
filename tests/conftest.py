"""Test fixtures and utilities."""

from collections.abc import Sequence
from typing import Any

import pytest

from ocnregistry.config import ContractConfig, Environment, ProviderConfig
from ocnregistry.encoding import OperationKind, SigningDomain, digest, encode_operation
from ocnregistry.errors import SignatureMismatch, TransactionReverted
from ocnregistry.models import Signature, TransactionReceipt
from ocnregistry.registry import Registry
from ocnregistry.signer import address_of, verify_signer
from ocnregistry.types import ZERO_ADDRESS

# Deterministic development keys (ganache -d accounts 0-2)
SPENDER_KEY = "0x4f3edf983ac636a65a842ce7c78d9aa706d3b113bce9c46f30d7d21715b23b1d"
PARTY_KEY = "0x6cbed15c793ce57650b9877cf6fa156fbef513c4e6134f022a85b1ffdd59b2a1"
OPERATOR_KEY = "0x6370fd033278c143179d81c5526140625662b8daa446c22ee2d73db3707e620c"

CONTRACT_ADDRESS = "0x" + "ab" * 20
CHAIN_ID = 9


class FakeLedger:
    """In-memory stand-in for the registry contract.

    Raw methods re-derive the signer from the signature exactly like the
    contract does and revert on a mismatch.
    """

    def __init__(self, domain: SigningDomain | None = None) -> None:
        self.domain = domain
        self.nodes: dict[str, str] = {}
        self.operators: list[str] = []
        self.parties: dict[str, dict[str, Any]] = {}
        self.party_addresses: list[str] = []
        self.calls: list[tuple[str, list[Any]]] = []
        self.submissions: list[tuple[str, list[Any], str]] = []
        self.fail_with: Exception | None = None
        self._block = 0

    # ReadTransport

    async def call(self, method: str, args: Sequence[Any] = ()) -> Any:
        self.calls.append((method, list(args)))
        if self.fail_with is not None:
            raise self.fail_with

        if method == "getNode":
            return self.nodes.get(args[0], "")
        if method == "getNodeOperators":
            return list(self.operators)
        if method == "getParties":
            return list(self.party_addresses)
        if method == "getPartyDetailsByAddress":
            party = self.parties.get(args[0])
            if party is None:
                return (b"\x00\x00", b"\x00\x00\x00", [], [], [], ZERO_ADDRESS, "")
            return (
                party["country_code"],
                party["party_id"],
                party["roles"],
                party["sender"],
                party["receiver"],
                party["operator"],
                self.nodes.get(party["operator"], ""),
            )
        if method == "getPartyDetailsByOcpi":
            for address, party in self.parties.items():
                if (party["country_code"], party["party_id"]) == (args[0], args[1]):
                    return (
                        address,
                        party["roles"],
                        party["sender"],
                        party["receiver"],
                        party["operator"],
                        self.nodes.get(party["operator"], ""),
                    )
            return (ZERO_ADDRESS, [], [], [], ZERO_ADDRESS, "")
        raise AssertionError(f"unexpected call {method}")

    # WriteTransport

    async def submit(
        self,
        method: str,
        args: Sequence[Any],
        signer_key: str | bytes,
    ) -> TransactionReceipt:
        args = list(args)
        sender = address_of(signer_key)
        self.submissions.append((method, args, sender))
        if self.fail_with is not None:
            raise self.fail_with

        match method:
            case "setNode":
                self._set_node(sender, args[0])
            case "setNodeRaw":
                signer, url, *sig = args
                self._check(OperationKind.SET_NODE, signer, (url,), sig)
                self._set_node(signer, url)
            case "deleteNode":
                self.nodes.pop(sender, None)
            case "deleteNodeRaw":
                signer, *sig = args
                self._check(OperationKind.DELETE_NODE, signer, (), sig)
                self.nodes.pop(signer, None)
            case "setParty":
                self._set_party(sender, *args)
            case "setPartyRaw":
                signer, country, party_id, roles, operator, *sig = args
                payload = (country.decode(), party_id.decode(), roles, operator)
                self._check(OperationKind.SET_PARTY, signer, payload, sig)
                self._set_party(signer, country, party_id, roles, operator)
            case "setPartyModules":
                self._set_modules(sender, *args)
            case "setPartyModulesRaw":
                signer, sender_modules, receiver_modules, *sig = args
                payload = (sender_modules, receiver_modules)
                self._check(OperationKind.SET_PARTY_MODULES, signer, payload, sig)
                self._set_modules(signer, sender_modules, receiver_modules)
            case "deleteParty":
                self.parties.pop(sender, None)
            case "deletePartyRaw":
                signer, *sig = args
                self._check(OperationKind.DELETE_PARTY, signer, (), sig)
                self.parties.pop(signer, None)
            case _:
                raise AssertionError(f"unexpected submit {method}")

        self._block += 1
        return TransactionReceipt(
            transaction_hash=f"0x{self._block:064x}",
            block_number=self._block,
            status=1,
            gas_used=21000,
            sender=sender,
        )

    def _check(
        self,
        kind: OperationKind,
        signer: str,
        payload: tuple[Any, ...],
        sig: list[Any],
    ) -> None:
        v, r, s = sig
        operation_digest = digest(encode_operation(kind, *payload), self.domain)
        try:
            verify_signer(operation_digest, Signature(v=v, r=r, s=s), signer)
        except SignatureMismatch as e:
            raise TransactionReverted(f"Signer does not match: {e}") from e

    def _set_node(self, operator: str, url: str) -> None:
        self.nodes[operator] = url
        if operator not in self.operators:
            self.operators.append(operator)

    def _set_party(
        self,
        address: str,
        country: bytes,
        party_id: bytes,
        roles: list[int],
        operator: str,
    ) -> None:
        existing = self.parties.get(address, {})
        self.parties[address] = {
            "country_code": country,
            "party_id": party_id,
            "roles": list(roles),
            "sender": existing.get("sender", []),
            "receiver": existing.get("receiver", []),
            "operator": operator,
        }
        if address not in self.party_addresses:
            self.party_addresses.append(address)

    def _set_modules(self, address: str, sender: list[int], receiver: list[int]) -> None:
        if address not in self.parties:
            raise TransactionReverted("Party not listed")
        self.parties[address]["sender"] = list(sender)
        self.parties[address]["receiver"] = list(receiver)


@pytest.fixture
def environment() -> Environment:
    """Create a test environment bound to a chain id."""
    return Environment(
        name="test",
        contract=ContractConfig(address=CONTRACT_ADDRESS),
        provider=ProviderConfig(host="localhost", port=8544),
        chain_id=CHAIN_ID,
    )


@pytest.fixture
def ledger(environment: Environment) -> FakeLedger:
    """Create an empty fake ledger."""
    return FakeLedger(environment.signing_domain)


@pytest.fixture
def registry(environment: Environment, ledger: FakeLedger) -> Registry:
    """Create a read-only registry client."""
    return Registry(environment, read_transport=ledger)


@pytest.fixture
def writable_registry(environment: Environment, ledger: FakeLedger) -> Registry:
    """Create a registry client with the spender's key."""
    return Registry(
        environment,
        SPENDER_KEY,
        read_transport=ledger,
        write_transport=ledger,
    )


@pytest.fixture
def party_address() -> str:
    return address_of(PARTY_KEY)


@pytest.fixture
def operator_address() -> str:
    return address_of(OPERATOR_KEY)

"""Tests for the registry data model."""

import pytest
from eth_utils import to_checksum_address

from ocnregistry.errors import InvalidArgument
from ocnregistry.models import (
    Module,
    Node,
    RawPartyByAddress,
    RawPartyByOcpi,
    Role,
    Signature,
    decode_raw,
    is_absent,
    to_party_details,
)
from ocnregistry.types import ZERO_ADDRESS

OPERATOR = to_checksum_address("0x90f8bf6a479f320ead074411a4b0e7944ea8c9c1")
PARTY = to_checksum_address("0xffcf8fdee72ac11b5c542428b35eef5769c409f0")


class TestEnums:
    """Tests for Role and Module mapping tables."""

    def test_role_indices(self) -> None:
        """Roles keep their on-chain indices."""
        assert [role.name for role in Role] == ["CPO", "EMSP", "HUB", "NAP", "NSP", "OTHER", "SCSP"]
        assert Role.from_index(1) is Role.EMSP

    def test_module_indices(self) -> None:
        """Modules keep their on-chain indices."""
        assert Module.from_index(0) is Module.CDRS
        assert Module.from_index(6) is Module.TOKENS

    def test_from_name_case_insensitive(self) -> None:
        """Names map back to members regardless of case."""
        assert Role.from_name("cpo") is Role.CPO
        assert Module.from_name("charging_profiles") is Module.CHARGING_PROFILES

    @pytest.mark.parametrize("index", [-1, 7, 255])
    def test_out_of_range_index(self, index: int) -> None:
        """Indices outside the closed set are rejected."""
        with pytest.raises(InvalidArgument, match="Invalid Role index"):
            Role.from_index(index)

    def test_unknown_name(self) -> None:
        """Unknown names are rejected."""
        with pytest.raises(InvalidArgument, match="Invalid Module name"):
            Module.from_name("payments")

    @pytest.mark.parametrize("value", [Role.HUB, 2, "hub", "HUB"])
    def test_coerce(self, value: object) -> None:
        """Members, indices and names are all accepted."""
        assert Role.coerce(value) is Role.HUB  # type: ignore[arg-type]

    @pytest.mark.parametrize("value", [True, 1.0, None])
    def test_coerce_rejects_other_types(self, value: object) -> None:
        """Booleans and other types are not enum values."""
        with pytest.raises(InvalidArgument):
            Role.coerce(value)  # type: ignore[arg-type]


class TestSignature:
    """Tests for the Signature struct."""

    def test_to_bytes(self) -> None:
        """Signatures serialize as r || s || v."""
        sig = Signature(v=27, r=b"\x01" * 32, s=b"\x02" * 32)
        data = sig.to_bytes()
        assert len(data) == 65
        assert data[:32] == b"\x01" * 32
        assert data[64] == 27

    def test_from_bytes_normalizes_v(self) -> None:
        """A 0/1 recovery id is shifted to 27/28."""
        sig = Signature.from_bytes(b"\x01" * 32 + b"\x02" * 32 + b"\x01")
        assert sig.v == 28

    def test_invalid_component_length(self) -> None:
        """r and s must be 32 bytes."""
        with pytest.raises(InvalidArgument, match="32 bytes"):
            Signature(v=27, r=b"\x01" * 31, s=b"\x02" * 32)

    def test_from_bytes_invalid_length(self) -> None:
        """Only 65-byte signatures can be parsed."""
        with pytest.raises(InvalidArgument, match="65 bytes"):
            Signature.from_bytes(b"\x00" * 64)


class TestRawResponses:
    """Tests for typed decoding of ledger responses."""

    def test_decode_by_address(self) -> None:
        """Tuples from the ledger decode into named fields."""
        raw = decode_raw(
            (b"DE", b"ABC", [0, 1], [3], [], OPERATOR, "https://node.example.org"),
            RawPartyByAddress,
        )
        assert raw.country_code == b"DE"
        assert raw.roles == [0, 1]
        assert raw.operator_domain == "https://node.example.org"

    def test_decode_by_ocpi(self) -> None:
        """Responses by OCPI id carry the party address first."""
        raw = decode_raw(
            [PARTY, [2], [], [], OPERATOR, "https://node.example.org"],
            RawPartyByOcpi,
        )
        assert raw.party_address == PARTY

    def test_decode_wrong_shape(self) -> None:
        """Responses with missing or mistyped fields are rejected."""
        with pytest.raises(InvalidArgument, match="RawPartyByAddress"):
            decode_raw((b"DE", b"ABC", [0]), RawPartyByAddress)
        with pytest.raises(InvalidArgument):
            decode_raw(("DE", b"ABC", ["x"], [], [], OPERATOR, ""), RawPartyByAddress)


class TestPartyDetails:
    """Tests for building PartyDetails."""

    def test_to_party_details(self) -> None:
        """Indices map to enum members and the node is attached."""
        details = to_party_details(
            country_code=b"DE",
            party_id=b"ABC",
            address=PARTY.lower(),
            roles=[0],
            modules_sender=[3, 5],
            modules_receiver=[2],
            operator_address=OPERATOR,
            operator_domain="https://node.example.org",
        )
        assert details is not None
        assert details.country_code == "DE"
        assert details.address == PARTY
        assert details.roles == [Role.CPO]
        assert details.modules.sender == [Module.LOCATIONS, Module.TARIFFS]
        assert details.modules.receiver == [Module.COMMANDS]
        assert details.node == Node(operator=OPERATOR, url="https://node.example.org")

    def test_zero_operator_is_absent(self) -> None:
        """A zero operator address means not found, whatever else is set."""
        assert is_absent(ZERO_ADDRESS)
        details = to_party_details(
            country_code=b"DE",
            party_id=b"ABC",
            address=PARTY,
            roles=[0],
            modules_sender=[],
            modules_receiver=[],
            operator_address=ZERO_ADDRESS,
            operator_domain="https://node.example.org",
        )
        assert details is None

    def test_out_of_range_role_rejected(self) -> None:
        """Unknown role indices from the ledger are not silently dropped."""
        with pytest.raises(InvalidArgument):
            to_party_details(
                country_code=b"DE",
                party_id=b"ABC",
                address=PARTY,
                roles=[9],
                modules_sender=[],
                modules_receiver=[],
                operator_address=OPERATOR,
                operator_domain="",
            )

"""Argument validation shared by the encoder, builders and registry facade.

All checks run before any network interaction and raise ``InvalidArgument``.
"""

from urllib.parse import urlsplit

from eth_utils import (
    is_0x_prefixed,
    is_checksum_address,
    is_checksum_formatted_address,
    is_hex_address,
    to_checksum_address,
)

from .errors import InvalidArgument
from .types import AddressHex

COUNTRY_CODE_LENGTH = 2
PARTY_ID_LENGTH = 3

_DEFAULT_PORTS = {"http": 80, "https": 443}


def verify_string_len(value: str, length: int) -> None:
    """Check that a string has exactly ``length`` characters.

    Any characters are accepted, only the length is checked.

    Raises:
        InvalidArgument: If the value is not a string of the wanted length

    """
    if not isinstance(value, str) or len(value) != length:
        got = len(value) if isinstance(value, str) else type(value).__name__
        raise InvalidArgument(f'Invalid string length. Wanted {length}, got "{value}" ({got})')


def verify_address(address: str) -> AddressHex:
    """Validate an Ethereum address and return its checksummed form.

    All-lowercase and all-uppercase hex is accepted. Mixed case input must
    carry a valid EIP-55 checksum.

    Raises:
        InvalidArgument: If the address is malformed or fails the checksum

    """
    if not isinstance(address, str) or not (is_0x_prefixed(address) and is_hex_address(address)):
        raise InvalidArgument(f'Invalid address. Expected Ethereum address, got "{address}".')
    if is_checksum_formatted_address(address) and not is_checksum_address(address):
        raise InvalidArgument(f'Invalid address. Bad checksum in "{address}".')
    return AddressHex(to_checksum_address(address))


def to_ocpi_bytes(value: str, length: int) -> bytes:
    """Encode an OCPI country code or party id as upper-cased ASCII bytes."""
    verify_string_len(value, length)
    try:
        return value.upper().encode("ascii")
    except UnicodeEncodeError as e:
        raise InvalidArgument(f'Invalid OCPI identifier. Expected ASCII, got "{value}"') from e


def from_ocpi_bytes(raw: bytes) -> str:
    """Decode a fixed-width OCPI identifier returned by the ledger."""
    return raw.rstrip(b"\x00").decode("utf-8")


def normalize_origin(url: str) -> str:
    """Reduce an absolute http(s) URL to its origin.

    Path, query and fragment are dropped, scheme and host are lower-cased and
    a default port is omitted, e.g. ``https://Node.example.org:443/path?x=1``
    becomes ``https://node.example.org``.

    Raises:
        InvalidArgument: If the url is not an absolute http(s) URL

    """
    if not isinstance(url, str):
        raise InvalidArgument(f"Invalid url. Expected string, got {type(url).__name__}")

    try:
        parts = urlsplit(url.strip())
        port = parts.port
    except ValueError as e:
        raise InvalidArgument(f'Invalid url "{url}": {e}') from e

    scheme = parts.scheme.lower()
    if scheme not in _DEFAULT_PORTS or not parts.hostname:
        raise InvalidArgument(f'Invalid url. Expected absolute http(s) URL, got "{url}"')

    host = parts.hostname.lower()
    if ":" in host:
        host = f"[{host}]"
    if port == 0:
        raise InvalidArgument(f'Invalid url. Port 0 is not a valid port, got "{url}"')
    if port is not None and port != _DEFAULT_PORTS[scheme]:
        return f"{scheme}://{host}:{port}"
    return f"{scheme}://{host}"

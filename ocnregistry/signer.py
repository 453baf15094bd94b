"""Recoverable signing and signer recovery for delegated operations."""

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount

from .errors import InvalidArgument, SignatureMismatch, SigningFailure
from .metrics import SIGNING_DURATION_SECONDS, SIGNING_ERRORS_TOTAL, SIGNING_REQUESTS_TOTAL
from .models import Signature
from .types import AddressHex
from .validation import verify_address

logger = logging.getLogger(__name__)


def _key_to_bytearray(private_key: str | bytes) -> bytearray:
    if isinstance(private_key, (bytes, bytearray)):
        return bytearray(private_key)
    if not isinstance(private_key, str):
        raise SigningFailure(f"Unsupported key type: {type(private_key).__name__}")

    hex_key = private_key[2:] if private_key.startswith(("0x", "0X")) else private_key
    try:
        return bytearray.fromhex(hex_key)
    except ValueError as e:
        raise SigningFailure("Malformed private key: not valid hex") from e


@contextmanager
def signing_key(private_key: str | bytes) -> Iterator[LocalAccount]:
    """Hold a private key for the duration of a ``with`` block.

    The hex-decoded buffer is zeroed when the block exits, whether it exits
    normally or by an exception. The yielded account keeps its own immutable
    copy of the key, so it must not be stored beyond the block.

    Raises:
        SigningFailure: If the key material is malformed

    """
    buffer = _key_to_bytearray(private_key)
    try:
        if len(buffer) != 32:
            raise SigningFailure(f"Malformed private key: expected 32 bytes, got {len(buffer)}")
        try:
            account = Account.from_key(bytes(buffer))
        except Exception as e:
            raise SigningFailure(f"Malformed private key: {e}") from e
        yield account
    finally:
        for i in range(len(buffer)):
            buffer[i] = 0


def address_of(private_key: str | bytes) -> AddressHex:
    """Derive the checksummed address controlled by a private key."""
    with signing_key(private_key) as account:
        return AddressHex(account.address)


def _check_digest(digest: bytes) -> None:
    if not isinstance(digest, (bytes, bytearray)) or len(digest) != 32:
        raise InvalidArgument("Digest must be 32 bytes")


def sign_digest(digest: bytes, private_key: str | bytes, operation: str = "custom") -> Signature:
    """
    Sign a 32-byte digest with the Ethereum signed-message envelope.

    Args:
        digest: The operation digest
        private_key: Key of the authorizing party
        operation: Label used for metrics

    Returns:
        The recoverable signature (v in {27, 28})

    Raises:
        InvalidArgument: If the digest is not 32 bytes
        SigningFailure: If the key material is malformed

    """
    _check_digest(digest)

    SIGNING_REQUESTS_TOTAL.labels(operation=operation).inc()
    start_time = time.perf_counter()

    try:
        with signing_key(private_key) as account:
            signed = account.sign_message(encode_defunct(primitive=bytes(digest)))
    except SigningFailure:
        SIGNING_ERRORS_TOTAL.labels(error_type="invalid_key").inc()
        raise

    SIGNING_DURATION_SECONDS.labels(operation=operation).observe(time.perf_counter() - start_time)
    logger.debug(f"Signed {operation} digest 0x{bytes(digest).hex()[:16]}...")

    return Signature(
        v=signed.v,
        r=signed.r.to_bytes(32, "big"),
        s=signed.s.to_bytes(32, "big"),
    )


def recover_signer(digest: bytes, signature: Signature) -> AddressHex:
    """Recover the address that produced ``signature`` over ``digest``.

    Raises:
        SignatureMismatch: If no address can be recovered

    """
    _check_digest(digest)
    try:
        recovered = Account.recover_message(
            encode_defunct(primitive=bytes(digest)),
            vrs=(signature.v, signature.r, signature.s),
        )
    except Exception as e:
        SIGNING_ERRORS_TOTAL.labels(error_type="unrecoverable").inc()
        raise SignatureMismatch(f"Unable to recover signer: {e}") from e
    return AddressHex(recovered)


def verify_signer(
    digest: bytes,
    signature: Signature,
    claimed: str | None = None,
) -> AddressHex:
    """Recover the signer and, if given, compare it with the claimed address.

    Returns:
        The recovered checksummed address

    Raises:
        InvalidArgument: If the claimed address is malformed
        SignatureMismatch: If the recovered address differs from the claim

    """
    recovered = recover_signer(digest, signature)
    if claimed is not None:
        expected = verify_address(claimed)
        if recovered != expected:
            SIGNING_ERRORS_TOTAL.labels(error_type="signature_mismatch").inc()
            raise SignatureMismatch(f"Signature by {recovered}, expected {expected}")
    return recovered

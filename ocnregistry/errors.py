"""Error kinds raised by ocnregistry."""


class RegistryError(Exception):
    """Base class for all registry client errors."""


class InvalidArgument(RegistryError, ValueError):
    """Malformed address, identifier, url or enum value."""


class NotWritable(RegistryError):
    """Write attempted on a read-only registry client."""


class SignatureMismatch(RegistryError):
    """Recovered signer does not match the claimed address."""


class SigningFailure(RegistryError):
    """Key material could not be used for signing."""


class TransportFailure(RegistryError):
    """Error reported by the ledger transport, passed through unretried."""


class InsufficientFunds(TransportFailure):
    """Sender cannot pay for the transaction."""


class TransactionReverted(TransportFailure):
    """Contract execution reverted."""


class TransportTimeout(TransportFailure):
    """Transaction was not included before the receipt timeout."""

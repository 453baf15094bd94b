"""Client for the OCN registry of nodes and OCPI parties."""

__version__ = "0.1.0"

from .config import ContractConfig, Environment, ProviderConfig  # noqa: E402
from .encoding import OperationKind, SigningDomain  # noqa: E402
from .errors import (  # noqa: E402
    InsufficientFunds,
    InvalidArgument,
    NotWritable,
    RegistryError,
    SignatureMismatch,
    SigningFailure,
    TransactionReverted,
    TransportFailure,
    TransportTimeout,
)
from .models import Module, Node, PartyDetails, PartyModules, Role, Signature  # noqa: E402
from .operations import SignedOperation  # noqa: E402
from .registry import Registry  # noqa: E402

__all__ = [
    "ContractConfig",
    "Environment",
    "InsufficientFunds",
    "InvalidArgument",
    "Module",
    "Node",
    "NotWritable",
    "OperationKind",
    "PartyDetails",
    "PartyModules",
    "ProviderConfig",
    "Registry",
    "RegistryError",
    "SignatureMismatch",
    "SignedOperation",
    "SigningDomain",
    "SigningFailure",
    "Signature",
    "TransactionReverted",
    "TransportFailure",
    "TransportTimeout",
    "__version__",
]

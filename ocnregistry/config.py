"""Configuration management using msgspec Struct.

A registry client is constructed from an explicit ``Environment``: where the
JSON-RPC endpoint lives and which deployed contract to talk to. Environments
can be built in code, loaded from a JSON file, assembled from a published
contract-definitions artifact or read from ``OCN_REGISTRY_*`` variables.
"""

import os
from importlib import resources
from pathlib import Path
from typing import Any

import msgspec

from .encoding import SigningDomain
from .errors import InvalidArgument
from .types import AddressHex
from .validation import verify_address


def load_bundled_abi() -> list[dict[str, Any]]:
    """Return the registry contract ABI shipped with the package."""
    data = resources.files("ocnregistry").joinpath("abi/Registry.json").read_bytes()
    return msgspec.json.decode(data, type=list[dict[str, Any]])


class ProviderConfig(msgspec.Struct, frozen=True):
    """JSON-RPC endpoint of the ledger."""

    protocol: str = "http"
    host: str = "localhost"
    port: int = 8544

    def __post_init__(self) -> None:
        if self.protocol not in {"http", "https"}:
            raise ValueError(f"protocol must be http or https, got {self.protocol}")

        if self.port < 1 or self.port > 65535:
            raise ValueError(f"port must be between 1 and 65535, got {self.port}")

        if not self.host:
            raise ValueError("host must not be empty")

    @property
    def url(self) -> str:
        return f"{self.protocol}://{self.host}:{self.port}"


class ContractConfig(msgspec.Struct, frozen=True):
    """Deployed registry contract."""

    address: str
    abi: list[dict[str, Any]] = msgspec.field(default_factory=load_bundled_abi)

    def __post_init__(self) -> None:
        try:
            verify_address(self.address)
        except InvalidArgument as e:
            raise ValueError(f"contract address is invalid: {self.address}") from e

        if not self.abi:
            raise ValueError("contract abi must not be empty")

    @property
    def checksum_address(self) -> AddressHex:
        return verify_address(self.address)


class Environment(msgspec.Struct, frozen=True):
    """Connection parameters of one registry deployment."""

    name: str
    contract: ContractConfig
    provider: ProviderConfig = msgspec.field(default_factory=ProviderConfig)

    # Binds raw operation digests to this chain and contract when set
    chain_id: int | None = None

    # Seconds to wait for a transaction to be included
    receipt_timeout: float = 120.0

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("name must not be empty")

        if self.chain_id is not None and self.chain_id < 1:
            raise ValueError(f"chain_id must be positive, got {self.chain_id}")

        if self.receipt_timeout <= 0:
            raise ValueError(f"receipt_timeout must be positive, got {self.receipt_timeout}")

    @property
    def signing_domain(self) -> SigningDomain | None:
        if self.chain_id is None:
            return None
        return SigningDomain(
            chain_id=self.chain_id,
            verifying_contract=self.contract.checksum_address,
        )


class _ContractDefinition(msgspec.Struct):
    abi: list[dict[str, Any]]
    address: str
    bytecode: str | None = None


def load_environment(path: Path) -> Environment:
    """Load an environment from a JSON file.

    The file holds the ``Environment`` fields, e.g.
    ``{"name": "local", "provider": {"host": "localhost", "port": 8544},
    "contract": {"address": "0x..."}}``.

    Raises:
        ValueError: If the file cannot be read or does not describe an environment

    """
    try:
        return msgspec.json.decode(path.read_bytes(), type=Environment)
    except FileNotFoundError:
        raise ValueError(f"Environment file not found: {path}")
    except msgspec.DecodeError as e:
        raise ValueError(f"Configuration validation error: {e}")


def load_contract_defs(
    path: Path,
    *,
    name: str | None = None,
    provider: ProviderConfig | None = None,
    contract_name: str = "Registry",
    chain_id: int | None = None,
) -> Environment:
    """Build an environment from a published contract-definitions file.

    The artifact maps contract names to ``{"abi", "address", "bytecode"}``,
    as written to ``contract.defs.<network>.json`` on deployment.

    Raises:
        ValueError: If the file is missing, malformed or lacks the contract

    """
    try:
        defs = msgspec.json.decode(path.read_bytes(), type=dict[str, _ContractDefinition])
    except FileNotFoundError:
        raise ValueError(f"Contract definitions not found: {path}")
    except msgspec.DecodeError as e:
        raise ValueError(f"Invalid contract definitions in {path}: {e}")

    if contract_name not in defs:
        raise ValueError(f'Contract "{contract_name}" not found in {path}')

    definition = defs[contract_name]
    return Environment(
        name=name or path.stem,
        contract=ContractConfig(address=definition.address, abi=definition.abi),
        provider=provider or ProviderConfig(),
        chain_id=chain_id,
    )


def get_environment_from_env() -> Environment:
    """Load the environment from ``OCN_REGISTRY_*`` variables.

    ``OCN_REGISTRY_CONTRACT_ADDRESS`` is required. The ABI defaults to the
    bundled one unless ``OCN_REGISTRY_CONTRACT_DEFS`` points to a
    contract-definitions file, whose address and ABI then take precedence.
    """
    provider_dict: dict[str, object] = {
        "protocol": os.getenv("OCN_REGISTRY_PROTOCOL", "http"),
        "host": os.getenv("OCN_REGISTRY_HOST", "localhost"),
        "port": int(os.getenv("OCN_REGISTRY_PORT", "8544")),
    }
    chain_id = os.getenv("OCN_REGISTRY_CHAIN_ID")
    name = os.getenv("OCN_REGISTRY_ENVIRONMENT", "local")

    try:
        provider = msgspec.convert(provider_dict, ProviderConfig)
    except msgspec.ValidationError as e:
        raise ValueError(f"Configuration validation error: {e}")

    defs_path = os.getenv("OCN_REGISTRY_CONTRACT_DEFS")
    if defs_path:
        return load_contract_defs(
            Path(defs_path),
            name=name,
            provider=provider,
            chain_id=int(chain_id) if chain_id else None,
        )

    config_dict: dict[str, object] = {
        "name": name,
        "contract": {"address": os.getenv("OCN_REGISTRY_CONTRACT_ADDRESS", "")},
        "chain_id": int(chain_id) if chain_id else None,
        "receipt_timeout": float(os.getenv("OCN_REGISTRY_RECEIPT_TIMEOUT", "120")),
    }

    try:
        environment = msgspec.convert(config_dict, Environment)
    except msgspec.ValidationError as e:
        raise ValueError(f"Configuration validation error: {e}")

    return msgspec.structs.replace(environment, provider=provider)

"""Ledger transports for the registry contract.

``ReadTransport`` and ``WriteTransport`` are the seams the registry facade
talks through. ``Web3Transport`` implements both against a JSON-RPC node.
Errors are mapped onto ``TransportFailure`` kinds and never retried here.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Protocol

import aiohttp
from web3 import AsyncWeb3, Web3
from web3.exceptions import ContractLogicError, TimeExhausted, Web3Exception

from .errors import (
    InsufficientFunds,
    TransactionReverted,
    TransportFailure,
    TransportTimeout,
)
from .metrics import REGISTRY_CALLS_TOTAL, TRANSACTIONS_TOTAL
from .models import TransactionReceipt
from .signer import signing_key
from .types import AddressHex

if TYPE_CHECKING:
    from .config import Environment

logger = logging.getLogger(__name__)


class ReadTransport(Protocol):
    """Executes read-only contract calls."""

    async def call(self, method: str, args: Sequence[Any] = ()) -> Any: ...


class WriteTransport(Protocol):
    """Submits state-changing contract calls and waits for inclusion."""

    async def submit(
        self,
        method: str,
        args: Sequence[Any],
        signer_key: str | bytes,
    ) -> TransactionReceipt: ...


def classify_error(method: str, error: BaseException) -> TransportFailure:
    """Map a web3/network error onto a transport failure kind."""
    if isinstance(error, TransportFailure):
        return error
    if isinstance(error, ContractLogicError):
        return TransactionReverted(f"{method} reverted: {error}")
    if isinstance(error, (TimeExhausted, TimeoutError)):
        return TransportTimeout(f"{method} timed out: {error}")
    if "insufficient funds" in str(error).lower():
        return InsufficientFunds(f"{method} failed: {error}")
    return TransportFailure(f"{method} failed: {error}")


def to_receipt(receipt: Any) -> TransactionReceipt:
    return TransactionReceipt(
        transaction_hash=Web3.to_hex(receipt["transactionHash"]),
        block_number=int(receipt["blockNumber"]),
        status=int(receipt["status"]),
        gas_used=int(receipt["gasUsed"]),
        sender=AddressHex(receipt["from"]),
    )


_TRANSPORT_ERRORS = (Web3Exception, ValueError, aiohttp.ClientError, TimeoutError)


class Web3Transport:
    """Read/write transport backed by an AsyncWeb3 HTTP provider."""

    def __init__(self, environment: Environment, w3: AsyncWeb3 | None = None) -> None:
        self._environment = environment
        self._w3 = w3 or AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(environment.provider.url))
        self._contract = self._w3.eth.contract(
            address=environment.contract.checksum_address,
            abi=environment.contract.abi,
        )

    @property
    def w3(self) -> AsyncWeb3:
        return self._w3

    def _function(self, method: str, args: Sequence[Any]) -> Any:
        try:
            return self._contract.get_function_by_name(method)(*args)
        except (Web3Exception, ValueError) as e:
            raise TransportFailure(f"Cannot prepare {method}: {e}") from e

    async def call(self, method: str, args: Sequence[Any] = ()) -> Any:
        """Call a view method of the registry contract."""
        function = self._function(method, args)
        REGISTRY_CALLS_TOTAL.labels(method=method).inc()
        try:
            return await function.call()
        except _TRANSPORT_ERRORS as e:
            raise classify_error(method, e) from e

    async def submit(
        self,
        method: str,
        args: Sequence[Any],
        signer_key: str | bytes,
    ) -> TransactionReceipt:
        """Sign and send a transaction, then wait for its receipt.

        Raises:
            InsufficientFunds: If the sender cannot pay for gas
            TransactionReverted: If the contract rejects the call
            TransportTimeout: If no receipt arrives within the receipt timeout
            TransportFailure: On any other network or node error

        """
        function = self._function(method, args)

        try:
            with signing_key(signer_key) as account:
                nonce = await self._w3.eth.get_transaction_count(account.address, "pending")
                tx = await function.build_transaction({"from": account.address, "nonce": nonce})
                signed = account.sign_transaction(tx)
            tx_hash = await self._w3.eth.send_raw_transaction(signed.raw_transaction)
            logger.info(f"Sent {method} transaction {Web3.to_hex(tx_hash)}")
            raw_receipt = await self._w3.eth.wait_for_transaction_receipt(
                tx_hash,
                timeout=self._environment.receipt_timeout,
            )
        except _TRANSPORT_ERRORS as e:
            failure = classify_error(method, e)
            TRANSACTIONS_TOTAL.labels(method=method, status=type(failure).__name__).inc()
            raise failure from e

        receipt = to_receipt(raw_receipt)
        if receipt.status != 1:
            TRANSACTIONS_TOTAL.labels(method=method, status="TransactionReverted").inc()
            raise TransactionReverted(
                f"{method} reverted in block {receipt.block_number}: {receipt.transaction_hash}"
            )

        TRANSACTIONS_TOTAL.labels(method=method, status="included").inc()
        logger.info(f"{method} included in block {receipt.block_number}")
        return receipt

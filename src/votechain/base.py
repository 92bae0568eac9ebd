"""Wallet provider interface."""

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import Any

from web3 import AsyncWeb3

ACCOUNTS_CHANGED = "accountsChanged"
CHAIN_CHANGED = "chainChanged"

# EIP-1193 error code for a request the user rejected
USER_REJECTED_REQUEST = 4001

EventHandler = Callable[[Any], None]


class ProviderRpcError(Exception):
    """Error returned by a wallet provider request."""

    def __init__(self, message: str, code: int | None = None, data: Any | None = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.data = data


class WalletProvider(ABC):
    """Wallet provider interface, modelled on EIP-1193.

    Events are delivered by calling registered handlers with the event
    payload: the new account list for ``accountsChanged`` and the new
    chain id (hex string) for ``chainChanged``.
    """

    @property
    @abstractmethod
    def web3(self) -> AsyncWeb3:
        pass

    @abstractmethod
    async def request(self, method: str, params: Sequence[Any] | None = None) -> Any:
        pass

    @abstractmethod
    def on(self, event: str, handler: EventHandler) -> None:
        pass

    @abstractmethod
    def remove_listener(self, event: str, handler: EventHandler) -> None:
        pass

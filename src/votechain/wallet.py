"""Chain binding over a wallet provider."""

from __future__ import annotations

import logging
from typing import Any

from web3 import AsyncWeb3

from .base import (
    ACCOUNTS_CHANGED,
    CHAIN_CHANGED,
    USER_REJECTED_REQUEST,
    EventHandler,
    WalletProvider,
)
from .exceptions import AccessDeniedError, NetworkError, NoProviderError
from .types import Address
from .utils import normalise_address, parse_chain_id

logger = logging.getLogger(__name__)


class Subscription:
    """Handle for one provider event registration."""

    def __init__(self, provider: WalletProvider, event: str, handler: EventHandler) -> None:
        self._provider = provider
        self.event = event
        self._handler = handler
        self._active = True
        provider.on(event, handler)

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        if not self._active:
            return
        self._provider.remove_listener(self.event, self._handler)
        self._active = False

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.unsubscribe()


class ChainBinding:
    """Expose account and chain queries of a wallet provider."""

    def __init__(self, provider: WalletProvider | None) -> None:
        self._provider = provider

    @property
    def has_provider(self) -> bool:
        return self._provider is not None

    @property
    def provider(self) -> WalletProvider:
        if self._provider is None:
            raise NoProviderError("Non-Ethereum environment detected; no wallet provider available")
        return self._provider

    @property
    def web3(self) -> AsyncWeb3:
        return self.provider.web3

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    async def request_access(self) -> Address:
        """Ask the wallet for account access and return the first account."""

        provider = self.provider
        try:
            accounts = await provider.request("eth_requestAccounts")
        except Exception as exc:
            if getattr(exc, "code", None) == USER_REJECTED_REQUEST:
                raise AccessDeniedError(
                    "User denied account access", details={"error": str(exc)}
                ) from exc
            raise NetworkError(
                "Wallet provider failed to grant account access",
                endpoint="eth_requestAccounts",
                details={"error": str(exc)},
            ) from exc

        if not accounts:
            raise AccessDeniedError("Wallet did not expose any account")

        account = normalise_address(accounts[0], field="account")
        logger.info("Wallet access granted for %s", account)
        return account

    async def current_chain_id(self) -> int:
        try:
            raw = await self.provider.request("eth_chainId")
        except NoProviderError:
            raise
        except Exception as exc:
            raise NetworkError(
                "Unable to read chain id from wallet provider",
                endpoint="eth_chainId",
                details={"error": str(exc)},
            ) from exc
        return parse_chain_id(raw)

    async def current_account(self) -> Address | None:
        try:
            accounts = await self.provider.request("eth_accounts")
        except NoProviderError:
            raise
        except Exception as exc:
            raise NetworkError(
                "Unable to read accounts from wallet provider",
                endpoint="eth_accounts",
                details={"error": str(exc)},
            ) from exc

        if not accounts:
            return None
        return normalise_address(accounts[0], field="account")

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------
    def on_accounts_changed(self, handler: EventHandler) -> Subscription:
        return Subscription(self.provider, ACCOUNTS_CHANGED, handler)

    def on_chain_changed(self, handler: EventHandler) -> Subscription:
        return Subscription(self.provider, CHAIN_CHANGED, handler)

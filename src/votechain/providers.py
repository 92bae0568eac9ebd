"""Wallet provider backed by a JSON-RPC node and an optional local signer."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Sequence
from typing import Any, cast

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.middleware import SignAndSendRawMiddlewareBuilder
from web3.types import RPCEndpoint

from .base import (
    ACCOUNTS_CHANGED,
    CHAIN_CHANGED,
    EventHandler,
    ProviderRpcError,
    WalletProvider,
)
from .config import DEFAULT_REQUEST_TIMEOUT
from .exceptions import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 2.0


class RPCWalletProvider(WalletProvider):
    """Serve wallet requests from an RPC node.

    With a private key the provider signs transactions locally and exposes
    that single account; without one it exposes the node's unlocked
    accounts (Ganache, Hardhat). Account and chain switches are detected
    by polling, see :meth:`poll_changes`.
    """

    def __init__(
        self,
        rpc_url: str,
        *,
        private_key: str | None = None,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        self.rpc_url = rpc_url
        self._web3 = AsyncWeb3(
            AsyncHTTPProvider(rpc_url, request_kwargs={"timeout": request_timeout})
        )
        self._account: LocalAccount | None = None
        if private_key:
            try:
                signer = cast(LocalAccount, Account.from_key(private_key))  # type: ignore[arg-type]
            except Exception as exc:
                raise ValidationError(
                    "Failed to derive signer account from provided private key",
                    field="private_key",
                    details={"error": str(exc)},
                ) from exc
            self._account = signer
            middleware = SignAndSendRawMiddlewareBuilder.build(signer)  # type: ignore[arg-type]
            self._web3.middleware_onion.add(middleware)
            self._web3.eth.default_account = signer.address

        self._listeners: defaultdict[str, list[EventHandler]] = defaultdict(list)
        self._last_chain_id: int | None = None
        self._last_accounts: list[str] | None = None

    @property
    def web3(self) -> AsyncWeb3:
        return self._web3

    @property
    def signer(self) -> LocalAccount | None:
        return self._account

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------
    async def request(self, method: str, params: Sequence[Any] | None = None) -> Any:
        if method in ("eth_requestAccounts", "eth_accounts"):
            return await self._accounts()

        if method == "eth_chainId":
            return hex(await self._web3.eth.chain_id)

        response = await self._web3.provider.make_request(RPCEndpoint(method), list(params or []))
        error = response.get("error")
        if error:
            if isinstance(error, dict):
                raise ProviderRpcError(
                    str(error.get("message", "RPC error")),
                    code=error.get("code"),
                    data=error.get("data"),
                )
            raise ProviderRpcError(str(error))
        return response.get("result")

    async def _accounts(self) -> list[str]:
        if self._account is not None:
            return [self._account.address]
        return list(await self._web3.eth.accounts)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------
    def on(self, event: str, handler: EventHandler) -> None:
        self._listeners[event].append(handler)

    def remove_listener(self, event: str, handler: EventHandler) -> None:
        handlers = self._listeners.get(event)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))

    def emit(self, event: str, payload: Any) -> None:
        for handler in list(self._listeners.get(event, ())):
            try:
                handler(payload)
            except Exception:
                logger.exception("Listener for %s failed", event)

    async def poll_changes(self) -> None:
        """Emit ``chainChanged``/``accountsChanged`` for switches since the last poll."""

        chain_id = await self._web3.eth.chain_id
        accounts = await self._accounts()

        if self._last_chain_id is not None and chain_id != self._last_chain_id:
            logger.info("Chain changed from %s to %s", self._last_chain_id, chain_id)
            self.emit(CHAIN_CHANGED, hex(chain_id))
        if self._last_accounts is not None and accounts != self._last_accounts:
            logger.info("Accounts changed")
            self.emit(ACCOUNTS_CHANGED, list(accounts))

        self._last_chain_id = chain_id
        self._last_accounts = list(accounts)

    async def watch(self, interval: float = DEFAULT_POLL_INTERVAL) -> None:
        """Poll for changes until cancelled."""

        while True:
            try:
                await self.poll_changes()
            except Exception as exc:
                logger.warning("Polling %s for wallet changes failed: %s", self.rpc_url, exc)
            await asyncio.sleep(interval)

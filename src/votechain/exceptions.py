"""Exception hierarchy for the votechain client."""

from collections.abc import Sequence
from typing import Any


class VotingError(Exception):
    """Base exception for all voting client errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NoProviderError(VotingError):
    """Raised when no wallet provider is available."""

    def __init__(self, message: str = "No wallet provider detected", details: dict | None = None):
        super().__init__(message, details)


class AccessDeniedError(VotingError):
    """Raised when the user declines the account access request."""

    pass


class UnsupportedNetworkError(VotingError):
    """Raised when the active chain has no registered voting contract."""

    def __init__(
        self,
        chain_id: int,
        supported_networks: Sequence[str],
        details: dict | None = None,
    ):
        supported = ", ".join(supported_networks) or "none"
        super().__init__(
            f"Contract not deployed on network {chain_id}. Supported networks: {supported}",
            details,
        )
        self.chain_id = chain_id
        self.supported_networks = list(supported_networks)


class ContractUnavailableError(VotingError):
    """Raised when a contract operation is attempted without a binding."""

    def __init__(self, message: str = "Contract not initialized", details: dict | None = None):
        super().__init__(message, details)


class NotConnectedError(VotingError):
    """Raised when an operation needs a connected account and there is none."""

    def __init__(self, message: str = "No wallet account connected", details: dict | None = None):
        super().__init__(message, details)


class RemoteCallFailedError(VotingError):
    """Raised when the bound address rejects a call or lacks the voting interface."""

    def __init__(
        self,
        message: str,
        cause: BaseException | None = None,
        function_name: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.cause = cause
        self.function_name = function_name


class UnclassifiedRemoteError(RemoteCallFailedError):
    """Remote failure that matched none of the known provider messages."""

    pass


class AlreadyVotedError(VotingError):
    """Raised when the connected account has already voted on this contract."""

    def __init__(
        self,
        message: str = "You have already voted",
        account: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.account = account


class TransactionDeniedError(VotingError):
    """Raised when the user rejects the signing prompt."""

    def __init__(
        self, message: str = "Transaction was denied by user", details: dict | None = None
    ):
        super().__init__(message, details)


class ResourceLimitExceededError(VotingError):
    """Raised when the configured gas limit is too low for the transaction."""

    def __init__(
        self,
        message: str,
        gas_limit: int | None = None,
        gas_used: int | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.gas_limit = gas_limit
        self.gas_used = gas_used


class OperationInProgressError(VotingError):
    """Raised when a vote is submitted while another one is outstanding."""

    def __init__(
        self, message: str = "A vote is already being submitted", details: dict | None = None
    ):
        super().__init__(message, details)


class NetworkError(VotingError):
    """Raised when network/provider issues occur."""

    def __init__(
        self,
        message: str,
        endpoint: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.endpoint = endpoint


class ValidationError(VotingError):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.field = field
        self.value = value

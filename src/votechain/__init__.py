"""votechain - client for a single-contract decentralized voting application.

Connects a wallet provider, resolves the Voting contract for the active
chain (or a manually supplied address), reads candidates and tallies,
and submits one vote per account.
"""

from .base import ProviderRpcError, WalletProvider
from .config import DeploymentConfig, VotingClientConfig
from .exceptions import (
    AccessDeniedError,
    AlreadyVotedError,
    ContractUnavailableError,
    NetworkError,
    NoProviderError,
    NotConnectedError,
    OperationInProgressError,
    RemoteCallFailedError,
    ResourceLimitExceededError,
    TransactionDeniedError,
    UnclassifiedRemoteError,
    UnsupportedNetworkError,
    ValidationError,
    VotingError,
)
from .networks import (
    DEVELOPMENT_NETWORKS,
    PRODUCTION_NETWORKS,
    NetworkRegistry,
    registry_for,
)
from .providers import RPCWalletProvider
from .resolver import BoundContract, ContractResolver
from .session import SessionController
from .submitter import VoteSubmitter, classify_error
from .types import (
    Address,
    BindingMode,
    Candidate,
    NetworkEntry,
    Session,
    SessionState,
    VoteReceipt,
    VotingSnapshot,
)
from .utils import short_address, sort_by_votes, vote_percentage
from .wallet import ChainBinding, Subscription

__version__ = "0.1.0"

__all__ = [
    # Session and components
    "SessionController",
    "ChainBinding",
    "Subscription",
    "ContractResolver",
    "BoundContract",
    "VoteSubmitter",
    "classify_error",
    "NetworkRegistry",
    "registry_for",
    "PRODUCTION_NETWORKS",
    "DEVELOPMENT_NETWORKS",
    # Providers
    "WalletProvider",
    "RPCWalletProvider",
    "ProviderRpcError",
    # Configuration
    "VotingClientConfig",
    "DeploymentConfig",
    # Types
    "Address",
    "BindingMode",
    "Candidate",
    "NetworkEntry",
    "Session",
    "SessionState",
    "VoteReceipt",
    "VotingSnapshot",
    # Exceptions
    "VotingError",
    "NoProviderError",
    "AccessDeniedError",
    "UnsupportedNetworkError",
    "ContractUnavailableError",
    "NotConnectedError",
    "RemoteCallFailedError",
    "UnclassifiedRemoteError",
    "AlreadyVotedError",
    "TransactionDeniedError",
    "ResourceLimitExceededError",
    "OperationInProgressError",
    "NetworkError",
    "ValidationError",
    # View helpers
    "short_address",
    "sort_by_votes",
    "vote_percentage",
]

"""
Signing module initialization
"""

from .workspace import Workspace, WorkspaceManager, DATA_FILE_NAME
from .tsp import TSPSelector
from .command import build_sign_args, format_store_option
from .classifier import (
    AttemptOutcome,
    OutcomeKind,
    classify,
    ERROR_MARKER,
    RETRYABLE_MARKER,
)
from .retry import RetryController, RetryPolicy, RetryResult, RetryState
from .signer import DocumentSigner

__all__ = [
    # Workspace
    "Workspace",
    "WorkspaceManager",
    "DATA_FILE_NAME",

    # Command construction
    "TSPSelector",
    "build_sign_args",
    "format_store_option",

    # Classification and retries
    "AttemptOutcome",
    "OutcomeKind",
    "classify",
    "ERROR_MARKER",
    "RETRYABLE_MARKER",
    "RetryController",
    "RetryPolicy",
    "RetryResult",
    "RetryState",

    # Facade
    "DocumentSigner",
]

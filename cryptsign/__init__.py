"""
cryptsign Python Package

CAdES document signing and certificate management on top of the
CryptoPro CSP command line tools.
"""

__version__ = "0.1.0"

from .config import SignerConfig, DEFAULT_TSP_SERVERS
from .types import AttachMode, SignatureProfile, SigningRequest
from .errors import (
    CryptSignError,
    SignatureError,
    SignatureInputError,
    WorkspaceError,
    SignatureConfigurationError,
    SignatureDeadlineError,
    SignatureToolError,
    TransientToolError,
    PermanentToolError,
    CertificateError,
    CertificateInstallationError,
    CertificateDeletionError,
    CertificateListError,
)
from .signing import DocumentSigner
from .certificates import CertificateManager

# Import logging package
from . import log

__all__ = [
    "DocumentSigner",
    "CertificateManager",
    "SignerConfig",
    "DEFAULT_TSP_SERVERS",
    "AttachMode",
    "SignatureProfile",
    "SigningRequest",
    "CryptSignError",
    "SignatureError",
    "SignatureInputError",
    "WorkspaceError",
    "SignatureConfigurationError",
    "SignatureDeadlineError",
    "SignatureToolError",
    "TransientToolError",
    "PermanentToolError",
    "CertificateError",
    "CertificateInstallationError",
    "CertificateDeletionError",
    "CertificateListError",
    "log",
]

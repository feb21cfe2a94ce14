"""
Exception hierarchy for cryptsign.

Every failure surfaced by the signer derives from ``SignatureError`` so callers
can test ``isinstance(exc, SignatureError)`` instead of parsing message text.
Tool failures carry the captured process output for operator debugging.
"""

from typing import Any, Dict, List, Optional


class CryptSignError(Exception):
    """Base class for all cryptsign errors."""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "error": self.__class__.__name__,
            "message": str(self),
        }


class SignatureError(CryptSignError):
    """Signature-class failure."""


class SignatureInputError(SignatureError):
    """Raised when the payload cannot be decoded. No process is started."""


class WorkspaceError(SignatureError):
    """Raised when the per-request workspace cannot be created, written or read."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["path"] = self.path
        return data


class SignatureConfigurationError(SignatureError):
    """Raised before any attempt when the signer is misconfigured for the request."""


class SignatureDeadlineError(SignatureError):
    """Raised when the overall signing budget is exhausted."""

    def __init__(self, message: str, attempts: int = 0, timeout: Optional[float] = None):
        super().__init__(message)
        self.attempts = attempts
        self.timeout = timeout

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({"attempts": self.attempts, "timeout": self.timeout})
        return data


class SignatureToolError(SignatureError):
    """
    Raised when the signing tool did not produce a signature.

    Attributes mirror the diagnostics of the last attempt.
    """

    def __init__(
        self,
        message: str,
        *,
        stdout: str = "",
        stderr: str = "",
        duration: float = 0.0,
        workdir: Optional[str] = None,
        attempts: int = 1,
        files: Optional[List[str]] = None,
    ):
        super().__init__(message)
        self.stdout = stdout
        self.stderr = stderr
        self.duration = duration
        self.workdir = workdir
        self.attempts = attempts
        self.files = list(files or [])

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "stdout": self.stdout,
            "stderr": self.stderr,
            "duration": self.duration,
            "workdir": self.workdir,
            "attempts": self.attempts,
            "files": self.files,
        })
        return data


class TransientToolError(SignatureToolError):
    """The tool kept failing with a retryable (timestamp authority) error."""


class PermanentToolError(SignatureToolError):
    """The tool failed with a non-retryable error."""


class CertificateError(CryptSignError):
    """Base class for certificate store failures."""


class CertificateInstallationError(CertificateError):
    """Raised when a certificate cannot be installed."""


class CertificateDeletionError(CertificateError):
    """Raised when a certificate cannot be deleted."""


class CertificateListError(CertificateError):
    """Raised when the certificate store cannot be listed."""


__all__ = [
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
]

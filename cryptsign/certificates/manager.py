"""
Certificate store management through the CryptoPro ``certmgr`` tool.

Each operation is a single ``certmgr`` invocation without retries; a non-zero
exit is reported with the tool's stderr.
"""

from __future__ import annotations

import base64
import binascii
import os
import tempfile
from typing import List, Optional

from ..config import SignerConfig
from ..errors import (
    CertificateDeletionError,
    CertificateError,
    CertificateInstallationError,
    CertificateListError,
)
from ..log import Logger, default_logger, mask_args
from ..monitoring import MetricsRegistry, get_registry
from ..process.runner import AsyncProcessRunner, ExecutionResult, ProcessRunner
from ..tracing import OpenTelemetryTracer, Tracer, guarded_span
from .pfx import inspect_pfx, normalize_thumbprint


class CertificateManager:
    """List, install and delete certificates in the configured store."""

    def __init__(
        self,
        config: Optional[SignerConfig] = None,
        logger: Optional[Logger] = None,
        runner: Optional[ProcessRunner] = None,
        tracer: Optional[Tracer] = None,
        metrics: Optional[MetricsRegistry] = None,
        timeout: float = 60.0,
    ):
        self.config = config or SignerConfig()
        self.logger = logger or default_logger()
        self.runner = runner or AsyncProcessRunner()
        self.tracer = tracer if tracer is not None else OpenTelemetryTracer()
        self.metrics = metrics or get_registry()
        self.timeout = timeout

    @property
    def workdir(self) -> str:
        return self.config.tmp_dir or tempfile.gettempdir()

    async def _certmgr(self, args: List[str]) -> ExecutionResult:
        self.logger.debug("certmgr args", "args", mask_args(args))
        return await self.runner.run(self.config.certmgr_path, args, self.workdir, timeout=self.timeout)

    def _record(self, operation: str, error: Optional[CertificateError]) -> None:
        self.metrics.observe_certificate(operation, "error" if error else "success")

    async def list_certificates(self) -> str:
        """
        Return the raw ``certmgr -list`` output for the store.

        Raises:
            CertificateListError: If certmgr fails
        """
        with guarded_span(self.tracer, "ListCertificates"):
            result = await self._certmgr(["-list", "-store", self.config.store])
            if result.failed:
                error = CertificateListError(f"certmgr list: {result.exit_error}, stderr: {result.stderr}")
                self._record("list", error)
                raise error
            self._record("list", None)
            return result.stdout

    async def is_certificate_installed(self, thumbprint: str) -> bool:
        """True if the thumbprint appears in the store listing; False when listing fails."""
        try:
            output = await self.list_certificates()
        except CertificateListError as e:
            self.logger.warning("certificate listing failed", "thumbprint", thumbprint, "error", e)
            return False
        listing = output.lower()
        return thumbprint.lower() in listing or normalize_thumbprint(thumbprint).lower() in listing

    async def install_certificate(self, cert_base64: str, pin: str) -> str:
        """
        Install a base64 encoded PFX bundle into the store.

        Returns:
            SHA-1 thumbprint of the installed certificate

        Raises:
            CertificateInstallationError: If the bundle is unreadable or certmgr fails
        """
        with guarded_span(self.tracer, "InstallCertificate"):
            try:
                thumbprint = await self._install(cert_base64, pin)
            except CertificateInstallationError as e:
                self._record("install", e)
                raise
            self._record("install", None)
            return thumbprint

    async def _install(self, cert_base64: str, pin: str) -> str:
        try:
            cert_data = base64.b64decode(cert_base64, validate=True)
        except (binascii.Error, ValueError, TypeError) as e:
            raise CertificateInstallationError(f"base64 decode: {e}") from e

        try:
            info = inspect_pfx(cert_data, pin)
        except ValueError as e:
            raise CertificateInstallationError(f"read PFX bundle: {e}") from e

        try:
            fd, cert_path = tempfile.mkstemp(prefix="cert_", suffix=".p12", dir=self.config.tmp_dir)
        except OSError as e:
            raise CertificateInstallationError(f"create temp file: {e}") from e

        try:
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(cert_data)
            except OSError as e:
                raise CertificateInstallationError(f"write file: {e}") from e

            result = await self._certmgr([
                "-install",
                "-pfx",
                "-store", self.config.store,
                "-file", cert_path,
                "-pin", pin,
                "-newpin", pin,
            ])
            if result.failed:
                raise CertificateInstallationError(f"certmgr: {result.exit_error}, stderr: {result.stderr}")
        finally:
            try:
                os.remove(cert_path)
            except FileNotFoundError:
                pass

        self.logger.info("certificate installed", "thumbprint", info.thumbprint, "subject", info.subject)
        return info.thumbprint

    async def delete_certificate(self, thumbprint: str) -> None:
        """
        Delete a certificate by thumbprint.

        Raises:
            CertificateDeletionError: If certmgr fails
        """
        with guarded_span(self.tracer, "DeleteCertificate"):
            result = await self._certmgr([
                "-delete",
                "-store", self.config.store,
                "-thumbprint", thumbprint,
            ])
            if result.failed:
                error = CertificateDeletionError(f"certmgr: {result.exit_error}, stderr: {result.stderr}")
                self._record("delete", error)
                raise error
            self._record("delete", None)
            self.logger.info("certificate deleted", "thumbprint", thumbprint)


__all__ = ["CertificateManager"]

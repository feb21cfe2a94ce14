"""
Document signing through the CryptoPro ``cryptcp`` tool.

``DocumentSigner`` owns the whole flow for one request: decode the payload,
create a private workspace, build the command (choosing a timestamp server per
attempt for CAdES-T), drive the retry controller, and read the signature back.
The workspace is removed on every exit path.

Requests share nothing mutable: the server pool is an immutable tuple and
every request has its own directory, so any number of ``sign`` calls may run
concurrently on one signer.
"""

from __future__ import annotations

import base64
import binascii
import random
import time
from typing import Callable, Optional, Union

from ..config import SignerConfig
from ..errors import (
    PermanentToolError,
    SignatureConfigurationError,
    SignatureDeadlineError,
    SignatureError,
    SignatureInputError,
    TransientToolError,
)
from ..log import Logger, default_logger, mask_args
from ..monitoring import MetricsRegistry, get_registry
from ..process.runner import AsyncProcessRunner, ExecutionResult, ProcessRunner
from ..tracing import OpenTelemetryTracer, Tracer, guarded_span
from ..types import AttachMode, SignatureProfile, SigningRequest
from .classifier import OutcomeKind
from .command import build_sign_args
from .retry import RetryController, RetryPolicy, RetryResult, SleepFn
from .tsp import TSPSelector
from .workspace import Workspace, WorkspaceManager


class DocumentSigner:
    """
    Produces CAdES signatures by running ``cryptcp``.

    Args:
        config: Signer configuration (store, TSP pool, paths, limits)
        logger: Structured logger; defaults to the stdlib-backed logger
        runner: Execution engine; defaults to ``AsyncProcessRunner``
        rng: Randomness for TSP server selection
        tracer: Span factory; defaults to OpenTelemetry
        metrics: Prometheus metrics registry; defaults to the process-wide one
        sleep: Backoff sleep, ``asyncio.sleep`` by default
        clock: Monotonic clock used for the deadline
    """

    def __init__(
        self,
        config: Optional[SignerConfig] = None,
        logger: Optional[Logger] = None,
        runner: Optional[ProcessRunner] = None,
        rng: Optional[random.Random] = None,
        tracer: Optional[Tracer] = None,
        metrics: Optional[MetricsRegistry] = None,
        sleep: Optional[SleepFn] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.config = config or SignerConfig()
        self.logger = logger or default_logger()
        self.runner = runner or AsyncProcessRunner()
        self.tracer = tracer if tracer is not None else OpenTelemetryTracer()
        self.metrics = metrics or get_registry()
        self.tsp_selector = TSPSelector(rng)
        self.workspaces = WorkspaceManager(tmp_dir=self.config.tmp_dir)
        self._clock = clock or time.monotonic
        self.retry = RetryController(
            policy=RetryPolicy(max_attempts=self.config.max_attempts, backoff_unit=self.config.backoff_unit),
            logger=self.logger,
            sleep=sleep,
            clock=self._clock,
            metrics=self.metrics,
        )

    async def sign_document(
        self,
        thumbprint: str,
        pin: str,
        data_base64: str,
        attach_signature: Optional[bool] = None,
        sign_type: Optional[Union[SignatureProfile, int, str]] = None,
        timeout: Optional[float] = None,
    ) -> str:
        """
        Sign base64 encoded data and return the base64 encoded DER signature.

        Args:
            thumbprint: Signer certificate thumbprint
            pin: Container PIN; never logged
            data_base64: Payload, standard base64
            attach_signature: True for an attached signature; None or False for detached
            sign_type: Profile override (0/1, name or ``SignatureProfile``); None uses the config
            timeout: Overall budget in seconds; None uses ``config.sign_timeout``

        Raises:
            SignatureError: Exactly one categorized failure
        """
        with guarded_span(self.tracer, "SignDocument"):
            try:
                data = base64.b64decode(data_base64, validate=True)
            except (binascii.Error, ValueError, TypeError) as e:
                self.metrics.observe_request("SignatureInputError")
                raise SignatureInputError(f"base64 decode: {e}") from e

            try:
                profile = SignatureProfile.parse(sign_type) if sign_type is not None else None
            except ValueError as e:
                self.metrics.observe_request("SignatureInputError")
                raise SignatureInputError(str(e)) from e

            request = SigningRequest(
                thumbprint=thumbprint,
                pin=pin,
                data=data,
                attach_mode=AttachMode.from_flag(attach_signature),
                profile=profile,
            )
            signature = await self._sign(request, timeout)
            return base64.b64encode(signature).decode("ascii")

    async def sign(self, request: SigningRequest, timeout: Optional[float] = None) -> bytes:
        """
        Sign raw bytes and return the DER signature.

        Raises:
            SignatureError: Exactly one categorized failure
        """
        with guarded_span(self.tracer, "Sign"):
            return await self._sign(request, timeout)

    def effective_profile(self, request: SigningRequest) -> SignatureProfile:
        return request.profile if request.profile is not None else self.config.sign_type

    async def _sign(self, request: SigningRequest, timeout: Optional[float]) -> bytes:
        budget = self.config.sign_timeout if timeout is None else timeout
        deadline = self._clock() + budget
        profile = self.effective_profile(request)
        pool = self.config.tsp_servers

        if profile is SignatureProfile.TIMESTAMPED and not pool:
            self.metrics.observe_request("SignatureConfigurationError")
            raise SignatureConfigurationError(
                "TSP server is required for CAdES-T signature type but none configured"
            )

        if budget <= 0:
            self.metrics.observe_request("SignatureDeadlineError")
            raise SignatureDeadlineError("signing deadline exceeded before attempt 1", attempts=0, timeout=budget)

        try:
            async with self.workspaces.workspace(request.data) as workspace:
                signature = await self._sign_in(workspace, request, profile, deadline, budget)
        except SignatureError as e:
            self.metrics.observe_request(e.__class__.__name__)
            raise
        self.metrics.observe_request("success")
        return signature

    async def _sign_in(
        self,
        workspace: Workspace,
        request: SigningRequest,
        profile: SignatureProfile,
        deadline: float,
        budget: float,
    ) -> bytes:
        extension = request.attach_mode.output_extension
        expected_output = workspace.output_name(extension)
        pool = self.config.tsp_servers

        async def attempt(number: int, remaining: float) -> ExecutionResult:
            tsp_url = None
            if profile is SignatureProfile.TIMESTAMPED:
                tsp_url = self.tsp_selector.select(pool)
                if not tsp_url:
                    raise SignatureConfigurationError(
                        "TSP server is required for CAdES-T signature type but none configured"
                    )
            args = build_sign_args(
                request,
                store=self.config.store,
                profile=profile,
                tsp_url=tsp_url,
                skip_chain_validation=self.config.skip_chain_validation,
                data_file=workspace.data_file,
            )
            self.logger.debug("cryptcp args", "args", mask_args(args))

            fields = [
                "attempt", number,
                "thumbprint", request.thumbprint,
                "workDir", str(workspace.path),
                "signType", profile.code,
                "skipChainValidation", self.config.skip_chain_validation,
            ]
            if tsp_url:
                fields += ["tspURL", tsp_url, "tspServersCount", len(pool)]
            self.logger.info("cryptcp starting", *fields)

            return await self.runner.run(
                self.config.cryptcp_path,
                args,
                workspace.path,
                timeout=remaining,
                expected_output=expected_output,
            )

        outcome = await self.retry.run(attempt, deadline, timeout=budget)
        if not outcome.succeeded:
            raise self._tool_error(outcome, workspace)

        output_path = workspace.output_path(extension)
        # The tool may still have removed or renamed the file after exiting
        if not output_path.is_file():
            files = workspace.list_files()
            self.logger.error(
                "signature file not created",
                "file", str(output_path),
                "workDir", str(workspace.path),
                "filesInDir", files,
            )
            raise PermanentToolError(
                f"signature file not created (expected: {output_path}, workDir: {workspace.path}, files: {files})",
                workdir=str(workspace.path),
                attempts=outcome.attempts,
                files=files,
            )
        return workspace.read_output(extension)

    def _tool_error(self, outcome: RetryResult, workspace: Workspace) -> SignatureError:
        last = outcome.result
        message = outcome.outcome.message if outcome.outcome else "signing failed"
        error_cls = TransientToolError if outcome.outcome and outcome.outcome.kind is OutcomeKind.RETRYABLE else PermanentToolError
        return error_cls(
            message,
            stdout=last.stdout if last else "",
            stderr=last.stderr if last else "",
            duration=last.duration if last else 0.0,
            workdir=str(workspace.path),
            attempts=outcome.attempts,
            files=list(last.files) if last else workspace.list_files(),
        )


__all__ = ["DocumentSigner"]

"""
Configuration for the cryptsign signer.

Values are plain dataclass fields; ``SignerConfig.from_env`` builds one from
``CRYPTSIGN_*`` environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Sequence, Tuple

from .types import SignatureProfile


DEFAULT_TSP_SERVERS: Tuple[str, ...] = (
    "http://qs.cryptopro.ru/tsp/tsp.srf",
    "http://pki.tax.gov.ru/tsp/tsp.srf",
    "http://tax4.tensor.ru/tsp/tsp.srf",
)

DEFAULT_CRYPTCP_PATH = "/opt/cprocsp/bin/amd64/cryptcp"
DEFAULT_CERTMGR_PATH = "/opt/cprocsp/bin/amd64/certmgr"

ENV_PREFIX = "CRYPTSIGN_"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass
class SignerConfig:
    """Configuration shared by the signer and the certificate manager."""
    store: str = "uMy"
    # None selects DEFAULT_TSP_SERVERS; an explicit empty pool disables CAdES-T
    tsp_servers: Optional[Sequence[str]] = None
    sign_type: SignatureProfile = SignatureProfile.TIMESTAMPED
    skip_chain_validation: bool = False
    cryptcp_path: str = DEFAULT_CRYPTCP_PATH
    certmgr_path: str = DEFAULT_CERTMGR_PATH
    tmp_dir: Optional[str] = None
    # End-to-end budget for one signing request, retries included
    sign_timeout: float = 300.0
    max_attempts: int = 3
    backoff_unit: float = 1.0

    def __post_init__(self):
        if self.tsp_servers is None:
            self.tsp_servers = DEFAULT_TSP_SERVERS
        elif isinstance(self.tsp_servers, (str, bytes)):
            raise ValueError("tsp_servers must be a sequence of URLs, not a single string")
        else:
            servers = tuple(self.tsp_servers)
            if any(not isinstance(url, str) or not url.strip() for url in servers):
                raise ValueError(f"tsp_servers contains a blank entry: {servers!r}")
            self.tsp_servers = tuple(url.strip() for url in servers)
        self.sign_type = SignatureProfile.parse(self.sign_type)
        if self.sign_timeout <= 0:
            raise ValueError("sign_timeout must be positive")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.backoff_unit < 0:
            raise ValueError("backoff_unit must not be negative")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, prefix: str = ENV_PREFIX) -> "SignerConfig":
        """
        Build a configuration from environment variables.

        Unset variables keep their defaults. ``TSP_SERVERS`` is a comma
        separated list.

        Raises:
            ValueError: If a variable holds an invalid value
        """
        env = os.environ if environ is None else environ
        values: Dict[str, object] = {}

        def get(name: str) -> Optional[str]:
            raw = env.get(prefix + name)
            return raw.strip() if raw is not None else None

        if get("STORE"):
            values["store"] = get("STORE")
        servers = get("TSP_SERVERS")
        if servers:
            values["tsp_servers"] = [s.strip() for s in servers.split(",") if s.strip()]
        if get("SIGN_TYPE"):
            values["sign_type"] = SignatureProfile.parse(get("SIGN_TYPE"))
        skip = get("SKIP_CHAIN_VALIDATION")
        if skip is not None:
            values["skip_chain_validation"] = _parse_bool(prefix + "SKIP_CHAIN_VALIDATION", skip)
        if get("CRYPTCP_PATH"):
            values["cryptcp_path"] = get("CRYPTCP_PATH")
        if get("CERTMGR_PATH"):
            values["certmgr_path"] = get("CERTMGR_PATH")
        if get("TMP_DIR"):
            values["tmp_dir"] = get("TMP_DIR")
        if get("SIGN_TIMEOUT"):
            values["sign_timeout"] = _parse_number(prefix + "SIGN_TIMEOUT", get("SIGN_TIMEOUT"), float)
        if get("MAX_ATTEMPTS"):
            values["max_attempts"] = _parse_number(prefix + "MAX_ATTEMPTS", get("MAX_ATTEMPTS"), int)
        if get("BACKOFF_UNIT"):
            values["backoff_unit"] = _parse_number(prefix + "BACKOFF_UNIT", get("BACKOFF_UNIT"), float)

        return cls(**values)


def _parse_bool(name: str, raw: str) -> bool:
    text = raw.lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ValueError(f"{name}: expected a boolean, got {raw!r}")


def _parse_number(name: str, raw: str, kind):
    try:
        return kind(raw)
    except ValueError:
        raise ValueError(f"{name}: expected {kind.__name__}, got {raw!r}") from None


__all__ = [
    "SignerConfig",
    "DEFAULT_TSP_SERVERS",
    "DEFAULT_CRYPTCP_PATH",
    "DEFAULT_CERTMGR_PATH",
    "ENV_PREFIX",
]

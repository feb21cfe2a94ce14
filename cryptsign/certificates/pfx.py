"""PKCS#12 (PFX) bundle inspection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.serialization import pkcs12


@dataclass(frozen=True)
class PfxInfo:
    thumbprint: str
    subject: str
    not_valid_after: Optional[str] = None


def normalize_thumbprint(thumbprint: str) -> str:
    """Upper-case hex without separators, as certmgr prints it."""
    return "".join(ch for ch in thumbprint if ch.isalnum()).upper()


def certificate_thumbprint(certificate: x509.Certificate) -> str:
    """SHA-1 fingerprint of a certificate, upper-case hex."""
    return certificate.fingerprint(hashes.SHA1()).hex().upper()


def inspect_pfx(data: bytes, pin: Optional[str]) -> PfxInfo:
    """
    Open a PFX bundle and describe its end-entity certificate.

    Raises:
        ValueError: If the bundle cannot be decrypted or holds no certificate
    """
    password = pin.encode("utf-8") if pin else None
    _key, certificate, _extra = pkcs12.load_key_and_certificates(data, password)
    if certificate is None:
        raise ValueError("PFX bundle contains no certificate")
    return PfxInfo(
        thumbprint=certificate_thumbprint(certificate),
        subject=certificate.subject.rfc4514_string(),
        not_valid_after=certificate.not_valid_after_utc.isoformat(),
    )


__all__ = [
    "PfxInfo",
    "inspect_pfx",
    "certificate_thumbprint",
    "normalize_thumbprint",
]

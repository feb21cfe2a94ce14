"""
Certificate management module initialization
"""

from .manager import CertificateManager
from .pfx import PfxInfo, inspect_pfx, certificate_thumbprint, normalize_thumbprint

__all__ = [
    "CertificateManager",
    "PfxInfo",
    "inspect_pfx",
    "certificate_thumbprint",
    "normalize_thumbprint",
]

"""Core signing types."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class AttachMode(str, Enum):
    """Whether the payload is embedded in the signature."""
    ATTACHED = "attached"
    DETACHED = "detached"

    @property
    def output_extension(self) -> str:
        """Extension the signing tool appends to the input file name."""
        return ".sig" if self is AttachMode.ATTACHED else ".sgn"

    @classmethod
    def from_flag(cls, attach_signature: Optional[bool]) -> "AttachMode":
        # Unspecified means detached
        return cls.ATTACHED if attach_signature else cls.DETACHED


class SignatureProfile(str, Enum):
    """CAdES profile: BES (basic) or T (timestamped)."""
    BASIC = "basic"
    TIMESTAMPED = "timestamped"

    @property
    def code(self) -> int:
        return 1 if self is SignatureProfile.TIMESTAMPED else 0

    @classmethod
    def parse(cls, value: Union["SignatureProfile", str, int]) -> "SignatureProfile":
        """
        Accept a profile, its name, or the numeric sign type (0 = BES, 1 = T).

        Raises:
            ValueError: If the value does not name a profile
        """
        if isinstance(value, SignatureProfile):
            return value
        if isinstance(value, bool):
            raise ValueError(f"invalid signature profile: {value!r}")
        if isinstance(value, int):
            if value == 0:
                return cls.BASIC
            if value == 1:
                return cls.TIMESTAMPED
            raise ValueError(f"invalid sign type: {value}")
        text = str(value).strip().lower()
        aliases = {
            "0": cls.BASIC,
            "bes": cls.BASIC,
            "cades-bes": cls.BASIC,
            "1": cls.TIMESTAMPED,
            "t": cls.TIMESTAMPED,
            "cades-t": cls.TIMESTAMPED,
        }
        if text in aliases:
            return aliases[text]
        try:
            return cls(text)
        except ValueError:
            raise ValueError(f"invalid signature profile: {value!r}") from None


@dataclass(frozen=True)
class SigningRequest:
    """
    One signing operation.

    ``profile`` of None means "use the signer's configured default".
    The PIN and payload are excluded from ``repr`` so the request can be logged.
    """
    thumbprint: str
    pin: str
    data: bytes
    attach_mode: AttachMode = AttachMode.DETACHED
    profile: Optional[SignatureProfile] = None

    def __repr__(self) -> str:
        profile = self.profile.value if self.profile is not None else None
        return (
            f"SigningRequest(thumbprint={self.thumbprint!r}, data=<{len(self.data)} bytes>, "
            f"attach_mode={self.attach_mode.value!r}, profile={profile!r})"
        )


__all__ = [
    "AttachMode",
    "SignatureProfile",
    "SigningRequest",
]

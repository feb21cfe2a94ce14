"""
Argument construction for the ``cryptcp`` signing tool.

The builder is a pure function of its inputs; the timestamp server is chosen
by the caller and passed in.
"""

from typing import List, Optional

from ..types import AttachMode, SignatureProfile, SigningRequest
from .workspace import DATA_FILE_NAME


def format_store_option(store: str) -> str:
    """
    Format a certificate store name as a cryptcp option.

    ``"uMy"`` -> ``"-uMy"``, ``"MY"`` -> ``"-uMy"``, ``"CA"`` -> ``"-uCa"``.
    Names already carrying the user (``u``) or machine (``m``) prefix, i.e. a
    lower-case ``u``/``m`` followed by an upper-case letter, pass through.

    Migrating store names: a bare ``u``/``m`` first letter is not treated as
    a prefix, so ``"My"`` becomes ``-uMy`` (not ``-My``) and ``"umy"``
    becomes ``-uUmy`` (not ``-umy``). Configure ``uMy``-style names to keep
    a prefix.
    """
    if len(store) > 1 and store[0] in ("u", "m") and store[1].isupper():
        return "-" + store
    if store:
        return "-u" + store[0].upper() + store[1:].lower()
    return "-u"


def build_sign_args(
    request: SigningRequest,
    store: str,
    profile: SignatureProfile,
    tsp_url: Optional[str] = None,
    skip_chain_validation: bool = False,
    data_file: str = DATA_FILE_NAME,
) -> List[str]:
    """
    Build the cryptcp argument vector for one signing attempt.

    The vector contains the PIN; log it only through ``mask_args``.

    Raises:
        ValueError: If a timestamped profile is requested without a server
    """
    args = [
        "-sign",
        format_store_option(store),
        "-thumbprint", request.thumbprint,
        "-pin", request.pin,
    ]

    if skip_chain_validation:
        args += ["-nochain", "-norev"]

    if request.attach_mode is AttachMode.ATTACHED:
        args.append("-attached")
    else:
        args.append("-detached")

    # DER output instead of BASE64
    args.append("-der")

    if profile is SignatureProfile.TIMESTAMPED:
        if not tsp_url:
            raise ValueError("a TSP server is required for a timestamped signature")
        args += ["-cadest", "-cadestsa", tsp_url]
    else:
        args.append("-cadesbes")

    args += [data_file, "-fext", request.attach_mode.output_extension]
    return args


__all__ = [
    "format_store_option",
    "build_sign_args",
]

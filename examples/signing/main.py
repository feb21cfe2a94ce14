#!/usr/bin/env python3
"""
Signing Example for cryptsign

Signs a file with a certificate from the CryptoPro store and writes the
DER signature next to it:

    CRYPTSIGN_SIGN_TYPE=1 SIGNER_PIN=... python examples/signing/main.py <thumbprint> <file> [--attached]

Configuration comes from CRYPTSIGN_* environment variables, the PIN from
SIGNER_PIN. Requires cryptcp to be installed.
"""

import asyncio
import base64
import logging
import os
import sys
from pathlib import Path

from cryptsign import DocumentSigner, SignatureError, SignerConfig, TransientToolError


# Configure logging
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


async def sign_file(thumbprint: str, path: Path, attached: bool) -> Path:
    config = SignerConfig.from_env()
    signer = DocumentSigner(config)

    data = base64.b64encode(path.read_bytes()).decode("ascii")
    signature = await signer.sign_document(
        thumbprint,
        os.environ.get("SIGNER_PIN", ""),
        data,
        attach_signature=attached,
    )

    suffix = ".sig" if attached else ".sgn"
    target = path.with_name(path.name + suffix)
    target.write_bytes(base64.b64decode(signature))
    return target


async def main():
    args = [a for a in sys.argv[1:] if not a.startswith("--")]
    if len(args) != 2:
        print(__doc__)
        sys.exit(2)

    thumbprint, file_name = args
    attached = "--attached" in sys.argv[1:]

    try:
        target = await sign_file(thumbprint, Path(file_name), attached)
        print(f"✓ Signature written to {target}")
    except TransientToolError as e:
        print(f"✗ Timestamp servers unavailable after {e.attempts} attempts")
        sys.exit(1)
    except SignatureError as e:
        print(f"✗ Signing failed: {e.to_dict()}")
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())

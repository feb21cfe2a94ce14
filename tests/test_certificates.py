import base64
import datetime
import os

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import pkcs12
from cryptography.x509.oid import NameOID

from cryptsign.certificates import CertificateManager, inspect_pfx, normalize_thumbprint
from cryptsign.config import SignerConfig
from cryptsign.errors import (
    CertificateDeletionError,
    CertificateInstallationError,
    CertificateListError,
)
from cryptsign.process.runner import ExecutionResult


PIN = "pfx-pin-1234"


def make_pfx(password=PIN):
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "Test Signer")])
    now = datetime.datetime.now(datetime.timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=30))
        .sign(key, hashes.SHA256())
    )
    encryption = serialization.BestAvailableEncryption(password.encode()) if password else serialization.NoEncryption()
    bundle = pkcs12.serialize_key_and_certificates(b"signer", key, cert, None, encryption)
    return bundle, cert.fingerprint(hashes.SHA1()).hex().upper()


class FakeCertmgr:
    """Returns canned results and remembers what it was asked to do."""

    def __init__(self, result=None):
        self.result = result or ExecutionResult(exit_error=None, stdout="", returncode=0)
        self.calls = []
        self.files_seen = {}

    async def run(self, tool, args, workdir, timeout=None, expected_output=None):
        self.calls.append((tool, list(args), workdir, timeout))
        if "-file" in args:
            path = args[args.index("-file") + 1]
            self.files_seen[path] = os.path.exists(path)
        return self.result


def failed(stderr="access denied"):
    return ExecutionResult(exit_error="exit status 1", stderr=stderr, returncode=1)


@pytest.fixture
def manager_factory(tmp_path, recording_logger, metrics):
    def factory(runner):
        config = SignerConfig(store="uMy", certmgr_path="/usr/bin/certmgr", tmp_dir=str(tmp_path))
        return CertificateManager(config=config, logger=recording_logger, runner=runner, metrics=metrics)
    return factory


class TestPfx:

    def test_inspect_reports_sha1_thumbprint(self):
        bundle, thumbprint = make_pfx()
        info = inspect_pfx(bundle, PIN)
        assert info.thumbprint == thumbprint
        assert "Test Signer" in info.subject

    def test_wrong_password(self):
        bundle, _ = make_pfx()
        with pytest.raises(ValueError):
            inspect_pfx(bundle, "wrong")

    def test_normalize_thumbprint(self):
        assert normalize_thumbprint("ab:cd ef-01") == "ABCDEF01"


class TestInstall:

    @pytest.mark.asyncio
    async def test_install_runs_certmgr_and_returns_thumbprint(self, manager_factory, tmp_path, recording_logger):
        bundle, thumbprint = make_pfx()
        runner = FakeCertmgr()
        manager = manager_factory(runner)

        result = await manager.install_certificate(base64.b64encode(bundle).decode(), PIN)

        assert result == thumbprint
        tool, args, _, timeout = runner.calls[0]
        assert tool == "/usr/bin/certmgr"
        assert args[:5] == ["-install", "-pfx", "-store", "uMy", "-file"]
        assert args[-4:] == ["-pin", PIN, "-newpin", PIN]
        assert timeout == manager.timeout
        # The bundle existed while certmgr ran and is gone afterwards
        assert list(runner.files_seen.values()) == [True]
        assert list(tmp_path.iterdir()) == []
        assert recording_logger.find("certificate installed")
        for entry in recording_logger.entries:
            assert PIN not in repr(entry.fields)

    @pytest.mark.asyncio
    async def test_bad_base64(self, manager_factory):
        runner = FakeCertmgr()
        with pytest.raises(CertificateInstallationError):
            await manager_factory(runner).install_certificate("%%%", PIN)
        assert runner.calls == []

    @pytest.mark.asyncio
    async def test_wrong_pin_is_rejected_before_certmgr(self, manager_factory):
        bundle, _ = make_pfx()
        runner = FakeCertmgr()
        with pytest.raises(CertificateInstallationError) as exc:
            await manager_factory(runner).install_certificate(base64.b64encode(bundle).decode(), "wrong")
        assert "read PFX bundle" in str(exc.value)
        assert runner.calls == []

    @pytest.mark.asyncio
    async def test_certmgr_failure(self, manager_factory, tmp_path, metrics):
        bundle, _ = make_pfx()
        runner = FakeCertmgr(failed("container exists"))
        with pytest.raises(CertificateInstallationError) as exc:
            await manager_factory(runner).install_certificate(base64.b64encode(bundle).decode(), PIN)
        assert "container exists" in str(exc.value)
        assert list(tmp_path.iterdir()) == []
        assert metrics.registry.get_sample_value(
            "cryptsign_certificate_operations_total", {"operation": "install", "result": "error"}
        ) == 1.0


class TestListAndDelete:

    @pytest.mark.asyncio
    async def test_list_returns_output(self, manager_factory):
        runner = FakeCertmgr(ExecutionResult(exit_error=None, stdout="SHA1 Hash : AB12CD\n", returncode=0))
        output = await manager_factory(runner).list_certificates()
        assert "AB12CD" in output
        assert runner.calls[0][1] == ["-list", "-store", "uMy"]

    @pytest.mark.asyncio
    async def test_list_failure(self, manager_factory):
        with pytest.raises(CertificateListError):
            await manager_factory(FakeCertmgr(failed())).list_certificates()

    @pytest.mark.asyncio
    async def test_is_installed_is_case_insensitive(self, manager_factory):
        runner = FakeCertmgr(ExecutionResult(exit_error=None, stdout="SHA1 Hash : 0xAB12CD34\n", returncode=0))
        manager = manager_factory(runner)
        assert await manager.is_certificate_installed("ab12cd34")
        assert not await manager.is_certificate_installed("ffff0000")

    @pytest.mark.asyncio
    async def test_is_installed_false_when_listing_fails(self, manager_factory, recording_logger):
        assert not await manager_factory(FakeCertmgr(failed())).is_certificate_installed("AB12")
        assert recording_logger.find("certificate listing failed")

    @pytest.mark.asyncio
    async def test_delete(self, manager_factory, recording_logger):
        runner = FakeCertmgr()
        await manager_factory(runner).delete_certificate("AB12CD")
        assert runner.calls[0][1] == ["-delete", "-store", "uMy", "-thumbprint", "AB12CD"]
        assert recording_logger.find("certificate deleted")

    @pytest.mark.asyncio
    async def test_delete_failure(self, manager_factory):
        with pytest.raises(CertificateDeletionError) as exc:
            await manager_factory(FakeCertmgr(failed("not found"))).delete_certificate("AB12CD")
        assert "not found" in str(exc.value)

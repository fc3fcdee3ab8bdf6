"""Tests for the gpg key manager."""

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import httpx
import pytest

from aptlier.common.command import CommandRunner
from aptlier.common.errors import AptlierError, KeyFetchError, UnsafeKeySourceError
from aptlier.keys.gpg import KEYSERVER, GpgManager, find_gpg
from aptlier.keys.sources import Email, File, KeyId, Ppa, Registry, Url

KEYRING = ["--no-default-keyring", "--keyring", "trustedkeys.gpg"]
ARMORED_KEY = b"-----BEGIN PGP PUBLIC KEY BLOCK-----\n...\n-----END PGP PUBLIC KEY BLOCK-----\n"


def make_client(responses):
    """httpx client answering from a url -> (status, body) mapping."""
    requested = []

    def handler(request):
        requested.append(str(request.url))
        status, body = responses.get(str(request.url), (404, b""))
        return httpx.Response(status, content=body)

    client = httpx.Client(transport=httpx.MockTransport(handler))
    client.requested = requested
    return client


@pytest.fixture
def runner():
    return MagicMock(spec=CommandRunner)


def manager_for(runner, responses=None):
    return GpgManager(runner, gpg_command="gpg", http_client=make_client(responses or {}))


class TestFindGpg:
    """Tests for gpg executable resolution."""

    def test_configured_command(self):
        assert find_gpg("/usr/bin/gpg2") == "/usr/bin/gpg2"

    def test_prefers_gpg1(self):
        with patch("aptlier.keys.gpg.shutil.which", side_effect=lambda c: f"/usr/bin/{c}"):
            assert find_gpg() == "/usr/bin/gpg1"

    def test_falls_back_to_gpg(self):
        with patch(
            "aptlier.keys.gpg.shutil.which",
            side_effect=lambda c: "/usr/bin/gpg" if c == "gpg" else None,
        ):
            assert find_gpg() == "/usr/bin/gpg"

    def test_missing(self):
        with patch("aptlier.keys.gpg.shutil.which", return_value=None):
            with pytest.raises(AptlierError):
                find_gpg()


class TestGpgManager:
    """Tests for GpgManager import strategies."""

    def test_key_id(self, runner):
        manager_for(runner).import_key(KeyId("0x7FAC5991"))

        runner.run.assert_called_once_with(["gpg", *KEYRING, "--recv-keys", "0x7FAC5991"])

    def test_email(self, runner):
        manager_for(runner).import_key(Email("release@example.org"), ["--keyserver", "hkps://k"])

        runner.run.assert_called_once_with(
            ["gpg", *KEYRING, "--keyserver", "hkps://k", "--search-keys", "release@example.org"]
        )

    def test_file(self, runner):
        manager_for(runner).import_key(File("vendor.asc"))

        runner.run.assert_called_once_with(["gpg", *KEYRING, "--import", "vendor.asc"])

    def test_raw_arguments(self, runner):
        """Test raw gpg options are passed through after the keyring."""
        manager_for(runner).add_key("--list-keys", ["--with-colons"])

        runner.run.assert_called_once_with(["gpg", *KEYRING, "--list-keys", "--with-colons"])

    def test_ppa(self, runner):
        """Test PPA keys are looked up on Launchpad then received."""
        url = "https://api.launchpad.net/1.0/~deadsnakes/+archive/ppa/signing_key_fingerprint"
        fingerprint = "F23C5A6CF475977595C89F51BA6932366A755776"
        manager = manager_for(runner, {url: (200, json.dumps(fingerprint).encode())})

        manager.import_key(Ppa("deadsnakes", "ppa"))

        runner.run.assert_called_once_with(
            ["gpg", *KEYRING, "--keyserver", KEYSERVER, "--recv-keys", fingerprint]
        )

    def test_ppa_lookup_failure(self, runner):
        with pytest.raises(KeyFetchError):
            manager_for(runner).import_key(Ppa("nobody", "nothing"))

        runner.run.assert_not_called()

    def test_ppa_invalid_response(self, runner):
        url = "https://api.launchpad.net/1.0/~a/+archive/b/signing_key_fingerprint"
        manager = manager_for(runner, {url: (200, b"<html>")})

        with pytest.raises(KeyFetchError):
            manager.import_key(Ppa("a", "b"))

    def test_url_imports_downloaded_key(self, runner):
        """Test an HTTPS key is downloaded to a temp file and imported."""
        url = "https://example.com/key.asc"
        imported = {}

        def capture_import(cmd):
            key_file = Path(cmd[-1])
            imported["content"] = key_file.read_bytes()
            imported["path"] = key_file

        runner.run.side_effect = capture_import

        manager_for(runner, {url: (200, ARMORED_KEY)}).import_key(Url(url))

        cmd = runner.run.call_args[0][0]
        assert cmd[:-1] == ["gpg", *KEYRING, "--import"]
        assert imported["content"] == ARMORED_KEY
        assert imported["path"].suffix == ".asc"
        assert not imported["path"].exists()

    def test_registry_key_url(self, runner):
        url = "https://packagecloud.io/github/git-lfs/gpgkey"
        manager = manager_for(runner, {url: (200, ARMORED_KEY)})

        manager.import_key(Registry("github/git-lfs"))

        assert manager.http_client.requested == [url]
        runner.run.assert_called_once()

    def test_download_failure(self, runner):
        with pytest.raises(KeyFetchError):
            manager_for(runner).import_key(Url("https://example.com/missing.asc"))

        runner.run.assert_not_called()

    def test_temp_file_removed_on_gpg_failure(self, runner):
        url = "https://example.com/key.asc"
        paths = []

        def fail(cmd):
            paths.append(Path(cmd[-1]))
            raise AptlierError("gpg failed")

        runner.run.side_effect = fail

        with pytest.raises(AptlierError):
            manager_for(runner, {url: (200, ARMORED_KEY)}).import_key(Url(url))

        assert not paths[0].exists()

    def test_http_refused_before_any_call(self, runner):
        manager = manager_for(runner)

        with pytest.raises(UnsafeKeySourceError):
            manager.add_key("http://example.com/key.asc")

        runner.run.assert_not_called()
        assert manager.http_client.requested == []

    def test_list_fingerprints(self, runner):
        manager_for(runner).list_fingerprints()

        runner.run.assert_called_once_with(["gpg", "--no-default-keyring", "--fingerprint"])


class TestHttpClientLifecycle:
    """Tests for the key download client's lifetime."""

    def test_client_created_on_first_use(self, runner):
        manager = GpgManager(runner, gpg_command="gpg")

        assert manager._http_client is None
        manager.import_key(KeyId("0x7FAC5991"))
        assert manager._http_client is None

    def test_close_owned_client(self, runner):
        manager = GpgManager(runner, gpg_command="gpg")
        client = manager.http_client

        manager.close()

        assert client.is_closed

    def test_close_without_client(self, runner):
        manager = GpgManager(runner, gpg_command="gpg")

        manager.close()

        assert manager._http_client is None

    def test_injected_client_left_open(self, runner):
        """Test a caller-supplied client is not closed by the manager."""
        client = make_client({})
        manager = GpgManager(runner, gpg_command="gpg", http_client=client)

        manager.close()

        assert not client.is_closed
        client.close()

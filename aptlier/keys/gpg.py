"""Import of signing keys into the workspace keyring.

Aptly verifies mirrors against ``trustedkeys.gpg`` in ``GNUPGHOME``, which
the command runner points at the workspace's ``gnupg`` directory.
"""

import shutil
import tempfile
from pathlib import Path
from typing import List, Optional, Sequence

import httpx

from ..common.command import CommandRunner
from ..common.errors import AptlierError, KeyFetchError
from ..common.logger import get_logger
from .sources import (
    Email,
    File,
    GpgArguments,
    KeyId,
    KeySource,
    Ppa,
    Registry,
    Url,
    classify_key_source,
)

logger = get_logger("gpg")

KEYRING_ARGS = ("--no-default-keyring", "--keyring", "trustedkeys.gpg")
KEYSERVER = "hkp://keyserver.ubuntu.com"
LAUNCHPAD_FINGERPRINT_URL = (
    "https://api.launchpad.net/1.0/~{owner}/+archive/{archive}/signing_key_fingerprint"
)
PACKAGECLOUD_KEY_URL = "https://packagecloud.io/{path}/gpgkey"


def find_gpg(gpg_command: Optional[str] = None) -> str:
    """Resolve the gpg executable: configured command, else gpg1, else gpg.

    Raises:
        AptlierError: If no gpg binary can be found
    """
    if gpg_command:
        return gpg_command
    for candidate in ("gpg1", "gpg"):
        path = shutil.which(candidate)
        if path:
            return path
    raise AptlierError("gpg not available - install with: apt-get install gnupg1")


class GpgManager:
    """Runs gpg against the workspace keyring."""

    def __init__(
        self,
        runner: CommandRunner,
        gpg_command: Optional[str] = None,
        http_client: Optional[httpx.Client] = None,
        timeout: float = 30.0,
    ):
        """Initialize the key manager.

        Args:
            runner: Runner carrying the isolated GNUPGHOME
            gpg_command: gpg executable; looked up on PATH when None
            http_client: Client used for key downloads; one is created on
                first use and closed by :meth:`close` when None
            timeout: Timeout in seconds for key downloads
        """
        self.runner = runner
        self._gpg_command = gpg_command
        self._resolved: Optional[str] = None
        self._http_client = http_client
        self._owns_client = http_client is None
        self.timeout = timeout

    @property
    def http_client(self) -> httpx.Client:
        if self._http_client is None:
            self._http_client = httpx.Client(timeout=self.timeout, follow_redirects=True)
        return self._http_client

    def close(self) -> None:
        """Close the HTTP client if this manager created it."""
        if self._owns_client and self._http_client is not None:
            self._http_client.close()
            self._http_client = None

    @property
    def gpg_command(self) -> str:
        if self._resolved is None:
            self._resolved = find_gpg(self._gpg_command)
        return self._resolved

    def cmdline(self, *args: str) -> List[str]:
        return [self.gpg_command, *args]

    def run(self, *args: str) -> None:
        """Run gpg with the given arguments."""
        self.runner.run(self.cmdline(*args))

    def list_fingerprints(self) -> None:
        """Print the keyring's fingerprints, creating the keyring if needed."""
        self.run("--no-default-keyring", "--fingerprint")

    def add_key(self, key: str, gpg_args: Sequence[str] = ()) -> KeySource:
        """Classify ``key`` and import it into ``trustedkeys.gpg``.

        Args:
            key: Key source as given on the command line
            gpg_args: Extra gpg options

        Returns:
            The classified key source
        """
        source = classify_key_source(key)
        self.import_key(source, gpg_args)
        return source

    def import_key(self, source: KeySource, gpg_args: Sequence[str] = ()) -> None:
        """Import a classified key source.

        Raises:
            KeyFetchError: If key material cannot be downloaded
            CommandError: If gpg fails
        """
        extra = tuple(gpg_args)
        logger.info(f"Importing key from {source}")

        if isinstance(source, Ppa):
            fingerprint = self.ppa_fingerprint(source.owner, source.archive)
            self.run(*KEYRING_ARGS, "--keyserver", KEYSERVER, *extra, "--recv-keys", fingerprint)
        elif isinstance(source, Registry):
            self.import_url(PACKAGECLOUD_KEY_URL.format(path=source.path), extra)
        elif isinstance(source, Url):
            self.import_url(source.url, extra)
        elif isinstance(source, Email):
            self.run(*KEYRING_ARGS, *extra, "--search-keys", source.address)
        elif isinstance(source, GpgArguments):
            self.run(*KEYRING_ARGS, *source.args, *extra)
        elif isinstance(source, KeyId):
            self.run(*KEYRING_ARGS, *extra, "--recv-keys", source.key_id)
        elif isinstance(source, File):
            self.run(*KEYRING_ARGS, *extra, "--import", source.path)
        else:
            raise TypeError(f"Unknown key source: {source!r}")

    def import_url(self, url: str, gpg_args: Sequence[str] = ()) -> None:
        """Download an armored key over HTTPS and import it."""
        key_data = self.fetch(url)
        with tempfile.NamedTemporaryFile(
            mode="wb", prefix="aptly-pubkey", suffix=".asc", delete=False
        ) as f:
            f.write(key_data)
            key_file = f.name

        try:
            self.run(*KEYRING_ARGS, *gpg_args, "--import", key_file)
        finally:
            Path(key_file).unlink(missing_ok=True)

    def ppa_fingerprint(self, owner: str, archive: str) -> str:
        """Look up a PPA's signing key fingerprint on Launchpad."""
        url = LAUNCHPAD_FINGERPRINT_URL.format(owner=owner, archive=archive)
        response = self._get(url)
        try:
            fingerprint = response.json()
        except ValueError as e:
            raise KeyFetchError(f"Invalid fingerprint response from {url}") from e
        if not isinstance(fingerprint, str) or not fingerprint:
            raise KeyFetchError(f"No signing key fingerprint for ppa:{owner}/{archive}")
        return fingerprint

    def fetch(self, url: str) -> bytes:
        """Download key material."""
        return self._get(url).content

    def _get(self, url: str) -> httpx.Response:
        logger.info(f"Fetching {url}")
        try:
            response = self.http_client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise KeyFetchError(f"Failed to fetch {url}: {e}") from e
        return response

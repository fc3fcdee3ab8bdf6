"""Working directory layout.

A workspace holds everything aptlier manages for one repository::

    <work_dir>/
        aptlier.yaml    optional configuration
        aptly.json      aptly configuration (created on first use)
        aptly/          aptly root directory
        gnupg/          isolated GNUPGHOME with gpg.conf
        snapshots       durable snapshot pointers
"""

import json
from pathlib import Path
from typing import Dict, Optional

from .logger import get_logger

logger = get_logger("workspace")

APTLY_DIR = "aptly"
APTLY_CONFIG = "aptly.json"
GNUPG_DIR = "gnupg"

GPG_CONF = """\
keyring trustedkeys.gpg
keyid-format long
list-options show-keyring
with-fingerprint
always-trust
"""


def default_aptly_config(root_dir: Path, distributor: str) -> Dict[str, object]:
    """Return the aptly.json settings written for a new workspace."""
    return {
        "rootDir": str(root_dir),
        "downloadConcurrency": 4,
        "downloadSpeedLimit": 0,
        "architectures": [],
        "dependencyFollowSuggests": False,
        "dependencyFollowRecommends": False,
        "dependencyFollowAllVariants": False,
        "dependencyFollowSource": False,
        "dependencyVerboseResolve": False,
        "gpgDisableSign": False,
        "gpgDisableVerify": False,
        "gpgProvider": "internal",
        "downloadSourcePackages": False,
        "skipLegacyPool": True,
        "ppaDistributorID": distributor,
        "ppaCodename": "",
        "skipContentsPublishing": False,
        "FileSystemPublishEndpoints": {},
        "S3PublishEndpoints": {},
        "SwiftPublishEndpoints": {},
    }


class Workspace:
    """Resolves and prepares files under the working directory."""

    def __init__(self, work_dir: str = ".", distributor: str = "ubuntu"):
        self.work_dir = Path(work_dir).expanduser().resolve()
        self.distributor = distributor

    def expand_path(self, path: str) -> Path:
        """Resolve ``path`` relative to the working directory."""
        return (self.work_dir / Path(path).expanduser()).resolve()

    def ensure_dir(self, path: str, mode: Optional[int] = None) -> Path:
        """Create a directory under the workspace if it does not exist.

        Args:
            path: Directory path, relative to the working directory
            mode: Permission bits applied on creation

        Returns:
            Absolute path of the directory
        """
        full_path = self.expand_path(path)
        if not full_path.is_dir():
            logger.info(f"+ mkdir -p {full_path}")
            if mode is None:
                full_path.mkdir(parents=True, exist_ok=True)
            else:
                full_path.mkdir(mode=mode, parents=True, exist_ok=True)
        return full_path

    def ensure_config(self, path: str, default_content: str) -> Path:
        """Write ``default_content`` to ``path`` unless the file exists.

        An existing file is never touched, so local edits survive.
        """
        full_path = self.expand_path(path)
        if not full_path.exists():
            logger.info(f"> {full_path}")
            full_path.write_text(default_content)
        return full_path

    @property
    def aptly_config_path(self) -> Path:
        return self.expand_path(APTLY_CONFIG)

    @property
    def gpg_home_path(self) -> Path:
        return self.expand_path(GNUPG_DIR)

    def aptly_config(self) -> Path:
        """Ensure the aptly root and aptly.json exist and return the config path."""
        aptly_home = self.ensure_dir(APTLY_DIR)
        content = json.dumps(default_aptly_config(aptly_home, self.distributor), indent=4)
        return self.ensure_config(APTLY_CONFIG, content + "\n")

    def gpg_home(self) -> Path:
        """Ensure the isolated gpg home and its gpg.conf exist."""
        gpg_home = self.ensure_dir(GNUPG_DIR, mode=0o700)
        self.ensure_config(str(gpg_home / "gpg.conf"), GPG_CONF)
        return gpg_home

    def prepare(self) -> None:
        """Create aptly.json and the gpg home before the first tool runs."""
        self.aptly_config()
        self.gpg_home()

    def child_environment(self) -> Dict[str, str]:
        """Environment overrides shared by every child process.

        Nothing is created here; see :meth:`prepare`.
        """
        return {"GNUPGHOME": str(self.gpg_home_path)}

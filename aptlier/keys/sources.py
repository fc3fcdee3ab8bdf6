"""Classification of signing-key sources.

A key given on the command line may be a PPA, a packagecloud repository,
an HTTPS URL, an email address, a key id, raw gpg options or a file.
:func:`classify_key_source` parses the text once into one of the variants
below; :class:`~aptlier.keys.gpg.GpgManager` maps each variant to an
import strategy.
"""

import re
from dataclasses import dataclass
from typing import Tuple, Union

from ..common.errors import AptlierError, UnsafeKeySourceError

PPA_RE = re.compile(r"^ppa:([-\w]+)/([-\w]+)$")
REGISTRY_RE = re.compile(r"^packagecloud:([-\w]+/[-\w]+)$")
EMAIL_RE = re.compile(r".@.+\.")
KEY_ID_RE = re.compile(r"^(0x)?[0-9a-fA-F]+$")


@dataclass(frozen=True)
class Ppa:
    """Launchpad personal package archive."""

    owner: str
    archive: str


@dataclass(frozen=True)
class Registry:
    """packagecloud repository, ``owner/repo``."""

    path: str


@dataclass(frozen=True)
class Url:
    """Armored key served over HTTPS."""

    url: str


@dataclass(frozen=True)
class Email:
    address: str


@dataclass(frozen=True)
class KeyId:
    key_id: str


@dataclass(frozen=True)
class File:
    """Key file on disk; ``-`` reads standard input."""

    path: str


@dataclass(frozen=True)
class GpgArguments:
    """Raw gpg options passed through unchanged."""

    args: Tuple[str, ...]


KeySource = Union[Ppa, Registry, Url, Email, KeyId, File, GpgArguments]


def classify_key_source(text: str) -> KeySource:
    """Parse a key source given on the command line.

    Args:
        text: PPA (``ppa:owner/archive``), packagecloud repository
            (``packagecloud:owner/repo``), HTTPS URL, email address, key id,
            gpg option or file name

    Returns:
        The matching KeySource variant

    Raises:
        UnsafeKeySourceError: For plain ``http://`` URLs
        AptlierError: For a malformed ``ppa:`` or ``packagecloud:`` source
    """
    if text.startswith("ppa:"):
        match = PPA_RE.match(text)
        if not match:
            raise AptlierError(f"Malformed PPA, expected ppa:OWNER/ARCHIVE: {text}")
        return Ppa(match.group(1), match.group(2))

    if text.startswith("packagecloud:"):
        match = REGISTRY_RE.match(text)
        if not match:
            raise AptlierError(
                f"Malformed packagecloud repository, expected packagecloud:OWNER/REPO: {text}"
            )
        return Registry(match.group(1))

    if text.startswith("https://"):
        return Url(text)

    if text.startswith("http://"):
        raise UnsafeKeySourceError(f"Refusing to fetch a signing key over plain HTTP: {text}")

    if EMAIL_RE.search(text):
        return Email(text)

    if len(text) > 1 and text.startswith("-"):
        return GpgArguments((text,))

    if KEY_ID_RE.match(text):
        return KeyId(text)

    return File(text)

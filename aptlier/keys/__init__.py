"""Signing-key sources and their import into the workspace keyring."""

from .gpg import GpgManager, find_gpg
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

__all__ = [
    "Email",
    "File",
    "GpgArguments",
    "GpgManager",
    "KeyId",
    "KeySource",
    "Ppa",
    "Registry",
    "Url",
    "classify_key_source",
    "find_gpg",
]

"""Validation of context files before they are referenced in a prompt.

Only pass/fail is produced: file contents are never returned or cached. The
checks are point-in-time; the backend CLI reads the file later on its own.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from second_opinion.errors import (
    BinaryFile,
    ContextFileNotFound,
    FileReadError,
    FileTooLarge,
    SensitiveFile,
)

log = logging.getLogger(__name__)

MAX_CONTEXT_FILE_BYTES = 200_000
BINARY_SNIFF_BYTES = 8_192

_ENV_FILE = ".env"
_CREDENTIAL_FILES = frozenset({".npmrc", ".netrc"})
_SSH_KEY_FILES = frozenset({"id_rsa", "id_dsa", "id_ecdsa", "id_ed25519"})
_KEY_EXTENSIONS = (".pem", ".p12", ".pfx", ".key")


def is_sensitive_path(path: str) -> bool:
    """Return True if *path* looks like credentials, keys, or VCS internals."""
    normalized = path.replace("\\", "/").lower()
    segments = normalized.split("/")
    filename = segments[-1]

    if filename == _ENV_FILE or filename.startswith(_ENV_FILE + "."):
        return True
    if ".git" in segments:
        return True
    if filename in _CREDENTIAL_FILES or filename in _SSH_KEY_FILES:
        return True
    return normalized.endswith(_KEY_EXTENSIONS)


def is_likely_binary(data: bytes) -> bool:
    """NUL byte within the first ``BINARY_SNIFF_BYTES`` bytes means binary."""
    return b"\x00" in data[:BINARY_SNIFF_BYTES]


def _canonical_form(path: Path) -> str | None:
    try:
        return str(path.resolve(strict=True))
    except (OSError, RuntimeError):
        return None


def _check_sensitive(raw: str, path: Path) -> None:
    if is_sensitive_path(raw):
        raise SensitiveFile(raw)
    canonical = _canonical_form(path)
    if canonical is not None and is_sensitive_path(canonical):
        log.warning("Context file %s resolves to sensitive path %s", raw, canonical)
        raise SensitiveFile(raw)


def _check_one(raw: str) -> None:
    path = Path(raw)

    try:
        size = path.stat().st_size
    except (FileNotFoundError, NotADirectoryError):
        raise ContextFileNotFound(raw) from None
    except OSError as exc:
        raise FileReadError(raw, exc) from exc

    _check_sensitive(raw, path)

    if size > MAX_CONTEXT_FILE_BYTES:
        raise FileTooLarge(raw, MAX_CONTEXT_FILE_BYTES)

    try:
        with path.open("rb") as handle:
            head = handle.read(BINARY_SNIFF_BYTES)
    except OSError as exc:
        raise FileReadError(raw, exc) from exc
    if is_likely_binary(head):
        raise BinaryFile(raw)


def validate_context_files(files: Sequence[str]) -> None:
    """Check every path in order, raising on the first violation.

    Raises a ``FileCheckError`` subclass: ``ContextFileNotFound``,
    ``SensitiveFile``, ``FileTooLarge``, ``BinaryFile`` or ``FileReadError``.
    """
    for raw in files:
        _check_one(raw)

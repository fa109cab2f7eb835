"""Error message scrubbing for text shown to untrusted clients.

Strips deployment details (directory layout, commit hashes, git refs,
URL credentials) and bounds message length. Applied to every failure
rendered as a tool response or an HTTP error body.
"""

from __future__ import annotations

import re

from vaultgate.errors import VaultGateError

MAX_ERROR_LENGTH = 500
ELLIPSIS = "..."
HASH_PLACEHOLDER = "<hash>"
REF_PLACEHOLDER = "<ref>"

SENSITIVE_MOUNTS = (
    "vault",
    "tmp",
    "var",
    "home",
    "root",
    "etc",
    "usr",
    "opt",
    "srv",
    "mnt",
    "private",
    "Users",
    "app",
    "data",
    "workspace",
)

_URL_CREDENTIALS = re.compile(r"(https?)://[^@\s/]+@")
# A mount only counts at the start of a path: not after a word character,
# so URL paths like ``host/data/x`` are left alone, but after ``:`` or ``/``
# as in ``error:/srv/x``, ``file:///home/x`` or a ``PATH`` list.
_SENSITIVE_PATH = re.compile(
    r"(?<![\w.-])/(?:"
    + "|".join(SENSITIVE_MOUNTS)
    + r")(?![\w.-])(?:/[^\s'\"`<>|:;,()\[\]{}]+)*/?"
)
_HEX_ID = re.compile(r"\b[0-9a-fA-F]{40}\b")
_GIT_REF = re.compile(r"(?:\.git/)?\brefs/[\w./-]+")


def _last_segment(match: re.Match[str]) -> str:
    return match.group(0).rstrip("/").rsplit("/", 1)[-1]


def sanitize_error(message: str, *, max_length: int = MAX_ERROR_LENGTH) -> str:
    """Scrub an internal error message for client display.

    Never raises. Applying it twice gives the same result as applying it once.
    """
    text = _URL_CREDENTIALS.sub(r"\1://***@", message)
    text = _SENSITIVE_PATH.sub(_last_segment, text)
    text = _HEX_ID.sub(HASH_PLACEHOLDER, text)
    text = _GIT_REF.sub(REF_PLACEHOLDER, text)
    if len(text) > max_length:
        text = text[:max_length] + ELLIPSIS
    return text


def client_error_message(exc: BaseException, *, max_length: int = MAX_ERROR_LENGTH) -> str:
    """Client-safe text for any exception.

    Typed vaultgate failures give their generic public message; anything
    else is sanitized.
    """
    if isinstance(exc, VaultGateError):
        return exc.public_message
    return sanitize_error(str(exc) or type(exc).__name__, max_length=max_length)

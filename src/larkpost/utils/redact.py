"""Secret / payload redaction for safe logging.

Debug dumps and structured log fields pass through :func:`redact` before
they are written anywhere.  The rules:

* Values under a **sensitive key** (``app_secret``, ``tenant_access_token``,
  ``Authorization``, ...) are masked, keeping at most the last four
  characters of a string value.
* Any **known secret** passed in *secrets* is scrubbed from every string in
  the tree, wherever it appears.
* ``Bearer <token>`` fragments are masked.
* **Binary** values (``bytes`` or long strings of non-printable characters,
  as found in multipart upload bodies) become ``<binary:N_bytes>``.
"""

from __future__ import annotations

import copy
import re
from collections.abc import Iterable
from typing import Any

# If any of these substrings appears in a key name (case-insensitive) the
# value is redacted.
_SENSITIVE_KEY_PATTERNS: frozenset[str] = frozenset({
    "token",
    "secret",
    "password",
    "credential",
    "authorization",
    "cookie",
    "api_key",
    "encrypt_key",
})

_BEARER_RE = re.compile(r"(Bearer\s+)\S+")

# Strings shorter than this are never treated as binary.
_BINARY_LENGTH_THRESHOLD = 256


def _mask(value: str) -> str:
    """Mask a sensitive string, keeping a short suffix for diagnostics."""
    if len(value) >= 16:
        return f"<redacted:...{value[-4:]}>"
    return "<redacted>"


def _scrub(value: str, secrets: tuple[str, ...]) -> str:
    """Remove known secrets and bearer tokens from *value*."""
    for secret in secrets:
        if secret and secret in value:
            value = value.replace(secret, "<redacted>")
    return _BEARER_RE.sub(lambda m: f"{m.group(1)}<redacted>", value)


def _looks_binary(value: str) -> bool:
    """Heuristic: return True if *value* appears to be raw binary data."""
    if len(value) < _BINARY_LENGTH_THRESHOLD:
        return False
    sample = value[:512]
    non_printable = sum(
        1 for ch in sample if not ch.isprintable() and ch not in ("\n", "\r", "\t")
    )
    return non_printable > len(sample) * 0.1


def _redact_value(value: Any, secrets: tuple[str, ...]) -> Any:
    if isinstance(value, dict):
        return _redact_dict(value, secrets)
    if isinstance(value, (list, tuple)):
        return [_redact_value(item, secrets) for item in value]
    if isinstance(value, (bytes, bytearray)):
        return f"<binary:{len(value)}_bytes>"
    if isinstance(value, str):
        if _looks_binary(value):
            return f"<binary:{len(value.encode('utf-8', 'surrogatepass'))}_bytes>"
        return _scrub(value, secrets)
    return value


def _redact_dict(d: dict, secrets: tuple[str, ...]) -> dict:
    result: dict = {}
    for key, value in d.items():
        key_lower = key.lower() if isinstance(key, str) else ""
        if any(pat in key_lower for pat in _SENSITIVE_KEY_PATTERNS):
            result[key] = _mask(value) if isinstance(value, str) else "<redacted>"
        else:
            result[key] = _redact_value(value, secrets)
    return result


def redact(payload: dict, secrets: Iterable[str] = ()) -> dict:
    """Return a deep copy of *payload* with sensitive data redacted.

    Parameters
    ----------
    payload:
        The dictionary to sanitize: a request body, a set of headers, or a
        bag of structured log fields.
    secrets:
        Exact secret values (app secret, current tenant token) to scrub
        from every string value in the tree.

    Returns
    -------
    dict
        A new dictionary.  The original *payload* is never mutated.

    Examples
    --------
    >>> redact({"Authorization": "Bearer t-abc"})
    {'Authorization': '<redacted>'}
    >>> redact({"note": "secret is s3cr3t-value"}, secrets=["s3cr3t-value"])
    {'note': 'secret is <redacted>'}
    """
    return _redact_dict(copy.deepcopy(payload), tuple(secrets))

"""Payment notification signatures (HMAC-SHA512 over canonical JSON).

The processor signs the notification body after sorting object keys at
every depth and serialising it compactly with JavaScript's
``JSON.stringify``. Verification must reproduce those bytes exactly, so
the canonical form is pinned here and in the tests:

- keys sorted lexicographically at every nesting level
- no whitespace (``","`` and ``":"`` separators)
- non-ASCII characters emitted as-is (UTF-8), not ``\\u`` escaped
- numbers rendered the way ECMAScript's ``Number#toString`` renders them:
  ``10.0`` → ``10``, ``1e-05`` → ``0.00001``, ``1e21`` → ``1e+21``

Key order follows Python's code point comparison, which differs from
JavaScript's UTF-16 ordering only for keys outside the Basic
Multilingual Plane.
"""

import hashlib
import hmac
import json
import math
from decimal import Decimal


def js_number(value: float) -> str:
    """Render a finite float exactly as ``String(value)`` does in JavaScript.

    Both languages pick the shortest digit string that round-trips, so
    only the placement of the decimal point and exponent differs.
    """
    if not math.isfinite(value):
        raise ValueError(f"Out of range float values are not JSON compliant: {value!r}")
    if value == 0:
        return "0"

    sign = "-" if value < 0 else ""
    _, digit_tuple, exponent = Decimal(repr(abs(value))).as_tuple()
    digits = "".join(str(d) for d in digit_tuple).rstrip("0")
    exponent += len(digit_tuple) - len(digits)
    k = len(digits)
    n = exponent + k  # decimal point position relative to the first digit

    if k <= n <= 21:
        text = digits + "0" * (n - k)
    elif 0 < n <= 21:
        text = f"{digits[:n]}.{digits[n:]}"
    elif -6 < n <= 0:
        text = "0." + "0" * -n + digits
    else:
        e = n - 1
        mantissa = digits if k == 1 else f"{digits[0]}.{digits[1:]}"
        text = f"{mantissa}e{'+' if e >= 0 else '-'}{abs(e)}"
    return sign + text


def _serialise(value) -> str:
    if isinstance(value, dict):
        items = sorted(((str(k), v) for k, v in value.items()), key=lambda item: item[0])
        return "{" + ",".join(f"{_serialise(k)}:{_serialise(v)}" for k, v in items) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_serialise(v) for v in value) + "]"
    if isinstance(value, float):
        return js_number(value)
    if value is None or isinstance(value, (str, bool, int)):
        return json.dumps(value, ensure_ascii=False)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def canonicalize(body) -> bytes:
    """Serialise ``body`` into the exact bytes the processor signs."""
    return _serialise(body).encode("utf-8")


def sign(body, secret: str) -> str:
    """Lowercase hex HMAC-SHA512 of the canonical body."""
    return hmac.new(secret.encode("utf-8"), canonicalize(body), hashlib.sha512).hexdigest()


def verify_signature(body, signature: str | None, secret: str | None) -> bool:
    """Check an inbound signature header against ``body``.

    Returns False (never raises) for an absent header, an absent secret,
    or a body that cannot be canonicalised. The comparison is constant
    time over the encoded bytes.
    """
    if not signature or not secret:
        return False
    try:
        expected = sign(body, secret).encode("ascii")
        received = signature.strip().encode("utf-8")
    except (TypeError, ValueError, UnicodeError):
        return False
    return hmac.compare_digest(expected, received)

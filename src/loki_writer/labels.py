from __future__ import annotations

from collections.abc import Mapping

_SHORT_ESCAPES: dict[str, str] = {
    "\a": "\\a",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\v": "\\v",
    "\\": "\\\\",
    '"': '\\"',
}


def quote(value: str) -> str:
    """Render ``value`` as a double-quoted string literal.

    Printable characters are kept verbatim, control and other
    non-printable characters are escaped.
    """
    out: list[str] = ['"']
    for ch in value:
        if ch in _SHORT_ESCAPES:
            out.append(_SHORT_ESCAPES[ch])
        elif ch.isprintable():
            out.append(ch)
        else:
            code = ord(ch)
            if code < 0x80:
                out.append(f"\\x{code:02x}")
            elif code < 0x10000:
                out.append(f"\\u{code:04x}")
            else:
                out.append(f"\\U{code:08x}")
    out.append('"')
    return "".join(out)


def format_labels(labels: Mapping[str, str]) -> str:
    """Canonical stream selector: ``{a="1", b="2"}`` with keys sorted."""
    pairs = ", ".join(f"{k}={quote(labels[k])}" for k in sorted(labels))
    return f"{{{pairs}}}"

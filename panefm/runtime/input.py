"""Low-level terminal input decoding.

Reads raw bytes from stdin and translates them into normalized key tokens
(``"j"``, ``"ENTER"``, ``"CTRL_D"``, ``"ALT_x"``, ``"PAGE_UP"``, ``"F2"``...).
Handles ESC-sequence timing, modifier combos and multi-byte UTF-8.
"""

from __future__ import annotations

import os
import select

ESC_SEQUENCE_TIMEOUT_MS = 25
_PENDING_BYTES: list[bytes] = []

_TILDE_KEYS: dict[str, str] = {
    "1": "HOME",
    "2": "INSERT",
    "3": "DELETE",
    "4": "END",
    "5": "PAGE_UP",
    "6": "PAGE_DOWN",
    "7": "HOME",
    "8": "END",
    "11": "F1",
    "12": "F2",
    "13": "F3",
    "14": "F4",
    "15": "F5",
    "17": "F6",
    "18": "F7",
    "19": "F8",
    "20": "F9",
    "21": "F10",
    "23": "F11",
    "24": "F12",
}
_FINAL_KEYS: dict[bytes, str] = {
    b"A": "UP",
    b"B": "DOWN",
    b"C": "RIGHT",
    b"D": "LEFT",
    b"H": "HOME",
    b"F": "END",
    b"P": "F1",
    b"Q": "F2",
    b"R": "F3",
    b"S": "F4",
}
# xterm modifier parameter: 1 + (shift=1, alt=2, ctrl=4)
_MODIFIER_PREFIX: dict[str, str] = {
    "2": "SHIFT_",
    "3": "ALT_",
    "4": "ALT_",
    "5": "CTRL_",
    "6": "CTRL_",
    "7": "CTRL_",
    "8": "CTRL_",
    "9": "ALT_",
}


def _read_ready_byte(fd: int, timeout_ms: int) -> bytes | None:
    ready, _, _ = select.select([fd], [], [], max(0.0, timeout_ms / 1000.0))
    if not ready:
        return None
    ch = os.read(fd, 1)
    if not ch:
        return None
    return ch


def _utf8_length(lead: int) -> int:
    if lead >= 0xF0:
        return 4
    if lead >= 0xE0:
        return 3
    if lead >= 0xC0:
        return 2
    return 1


def _decode_control(ch: bytes) -> str | None:
    code = ch[0]
    if ch == b"\t":
        return "TAB"
    if ch in {b"\r", b"\n"}:
        return "ENTER"
    if ch in {b"\x08", b"\x7f"}:
        return "BACKSPACE"
    if 1 <= code <= 26:
        return f"CTRL_{chr(ord('A') + code - 1)}"
    if code == 0:
        return "CTRL_SPACE"
    return None


def _read_csi(fd: int) -> str:
    """Decode the remainder of ``ESC [`` up to its final byte."""
    params = b""
    while True:
        part = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
        if part is None:
            return "ESC"
        if 0x40 <= part[0] <= 0x7E:
            final = part
            break
        params += part
        if len(params) > 16:
            return "ESC"

    text = params.decode("ascii", errors="replace")
    if final == b"~":
        number, _, modifier = text.partition(";")
        name = _TILDE_KEYS.get(number)
        if name is None:
            return "ESC"
        return _MODIFIER_PREFIX.get(modifier, "") + name
    name = _FINAL_KEYS.get(final)
    if name is None:
        return "ESC"
    _, _, modifier = text.partition(";")
    return _MODIFIER_PREFIX.get(modifier, "") + name


def read_key(fd: int, timeout_ms: int | None = None) -> str:
    """Return the next key token, or ``""`` when ``timeout_ms`` elapses."""
    if _PENDING_BYTES:
        ch = _PENDING_BYTES.pop(0)
    else:
        if timeout_ms is not None:
            ready, _, _ = select.select([fd], [], [], max(0.0, timeout_ms / 1000.0))
            if not ready:
                return ""
        ch = os.read(fd, 1)
        if not ch:
            return ""

    if ch != b"\x1b":
        control = _decode_control(ch)
        if control is not None:
            return control
        data = ch
        for _ in range(_utf8_length(ch[0]) - 1):
            more = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
            if more is None:
                break
            data += more
        return data.decode("utf-8", errors="replace")

    seq = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
    if seq is None:
        return "ESC"
    if seq == b"[":
        return _read_csi(fd)
    if seq == b"O":
        final = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
        if final is None:
            return "ESC"
        return _FINAL_KEYS.get(final, "ESC")
    if seq == b"\x1b":
        _PENDING_BYTES.append(seq)
        return "ESC"
    control = _decode_control(seq)
    if control is not None:
        return f"ALT_{control}"
    return f"ALT_{seq.decode('utf-8', errors='replace')}"


__all__ = ["read_key"]

"""
Canonical Action Encoder

Serializes an action into the MessagePack byte stream the venue hashes.

The venue's reference clients pack actions with a stock MessagePack packer,
so ``msgpack`` is used here too, but pinned to the exact settings that
reproduce their bytes:

- maps keep insertion order (never sorted)
- integers take the smallest fixint/uint/int width for their magnitude
- ``str`` is packed as str8/16/32, ``bytes`` as bin8/16/32
- no floats: quantities must already be wire strings or scaled integers

Anything outside that value model fails with ``EncodingError`` before a
single byte is produced.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Union

import msgpack

from hl_signing.signers.exceptions import EncodingError

ADDRESS_LENGTH = 20

# An action mapping, or the list envelope used for multi-sig L1 actions
Action = Union[Mapping[str, Any], list[Any], tuple[Any, ...]]

_HEX_DIGITS = frozenset("0123456789abcdef")


def _canonicalize(value: Any, path: str) -> Any:
    """
    Walk an action and return a plain dict/list copy safe to pack.

    Args:
        value: The (sub-)value to check.
        path: Location of ``value`` inside the action, for error messages.

    Raises:
        EncodingError: On any type the venue's encoding does not define.
    """
    # bool before int: bool is an int subclass
    if value is None or isinstance(value, (bool, str, bytes)):
        return value
    if isinstance(value, int):
        return int(value)
    if isinstance(value, Mapping):
        out: dict[str, Any] = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise EncodingError(
                    f"Map keys must be strings, got {type(key).__name__} at {path}"
                )
            out[key] = _canonicalize(item, f"{path}.{key}")
        return out
    if isinstance(value, (list, tuple)):
        return [_canonicalize(item, f"{path}[{i}]") for i, item in enumerate(value)]

    raise EncodingError(
        f"Unsupported value type {type(value).__name__} at {path}; "
        "format numbers with float_to_wire or float_to_int_for_hashing first"
    )


def _reject(obj: Any) -> Any:
    raise TypeError(f"can not serialize {type(obj).__name__!r} object")


def pack_action(action: Action) -> bytes:
    """
    Encode an action (or a multi-sig tuple envelope) as canonical MessagePack.

    Args:
        action: Ordered mapping, or a sequence for multi-sig envelopes.

    Returns:
        The packed bytes, identical to the reference encoder's output.

    Raises:
        EncodingError: If the action holds an unsupported type or an integer
            outside the signed/unsigned 64-bit range.

    Example:
        >>> pack_action({"type": "scheduleCancel"}).hex()
        '81a474797065ae7363686564756c6543616e63656c'
    """
    canonical = _canonicalize(action, "action")
    packer = msgpack.Packer(
        use_bin_type=True,
        use_single_float=False,
        strict_types=False,
        datetime=False,
        default=_reject,
    )
    try:
        return packer.pack(canonical)
    except (TypeError, ValueError, OverflowError) as e:
        raise EncodingError(f"Failed to encode action: {e}") from e


def normalize_address(address: str) -> str:
    """
    Validate an address and return its lowercase ``0x``-prefixed form.

    Raises:
        EncodingError: If the address is not exactly 20 bytes of hex.
    """
    if not isinstance(address, str):
        raise EncodingError(f"Address must be a string, got {type(address).__name__}")

    clean = address[2:] if address[:2] in ("0x", "0X") else address
    clean = clean.lower()
    if not clean:
        raise EncodingError("Address must not be empty")
    if not set(clean) <= _HEX_DIGITS:
        raise EncodingError(f"Address contains non-hex characters: {address}")
    if len(clean) != ADDRESS_LENGTH * 2:
        raise EncodingError(
            f"Address must be exactly {ADDRESS_LENGTH} bytes "
            f"({ADDRESS_LENGTH * 2} hex chars), got {len(clean)} hex chars"
        )
    return "0x" + clean


def address_to_bytes(address: str) -> bytes:
    """Decode a 20-byte address; the ``0x`` prefix and letter case are ignored."""
    return bytes.fromhex(normalize_address(address)[2:])

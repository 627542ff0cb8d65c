"""
Balance modes and the signed permit shape used by farm steps
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Mapping, Union

from ..errors import MalformedPermit


class FarmFromMode(IntEnum):
    """Which balance a farm call pulls tokens from"""
    EXTERNAL = 0
    INTERNAL = 1
    EXTERNAL_INTERNAL = 2
    INTERNAL_TOLERANT = 3


class FarmToMode(IntEnum):
    """Which balance a farm call delivers tokens to"""
    EXTERNAL = 0
    INTERNAL = 1


@dataclass(frozen=True)
class SignedPermit:
    """
    An EIP-2612 permit that was signed elsewhere.

    Only the pieces needed to encode permitERC20 are kept.
    """
    deadline: int
    v: int
    r: bytes
    s: bytes

    @classmethod
    def coerce(cls, permit: Union["SignedPermit", Mapping[str, Any]]) -> "SignedPermit":
        """
        Accept either a SignedPermit or the raw signer output:

            {"typed_data": {"message": {"deadline": ...}},
             "split": {"v": ..., "r": ..., "s": ...}}

        Raises:
            MalformedPermit: If the structure is missing a field
        """
        if isinstance(permit, cls):
            return permit
        if not isinstance(permit, Mapping):
            raise MalformedPermit(f"Permit must be a mapping, got {type(permit).__name__}")

        typed_data = permit.get("typed_data", permit.get("typedData"))
        if not isinstance(typed_data, Mapping):
            raise MalformedPermit.missing_field("typed_data")
        message = typed_data.get("message")
        if not isinstance(message, Mapping):
            raise MalformedPermit.missing_field("typed_data.message")
        if "deadline" not in message:
            raise MalformedPermit.missing_field("typed_data.message.deadline")

        split = permit.get("split")
        if not isinstance(split, Mapping):
            raise MalformedPermit.missing_field("split")
        for key in ("v", "r", "s"):
            if key not in split:
                raise MalformedPermit.missing_field(f"split.{key}")

        return cls(
            deadline=_to_int(message["deadline"], "typed_data.message.deadline"),
            v=_to_int(split["v"], "split.v"),
            r=_to_bytes32(split["r"], "split.r"),
            s=_to_bytes32(split["s"], "split.s"),
        )


def _to_int(value: Any, name: str) -> int:
    try:
        if isinstance(value, str) and value.lower().startswith("0x"):
            return int(value, 16)
        return int(value)
    except (TypeError, ValueError):
        raise MalformedPermit(f"Permit field {name} is not an integer: {value!r}")


def _to_bytes32(value: Any, name: str) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        raw = bytes(value)
    elif isinstance(value, str):
        try:
            raw = bytes.fromhex(value[2:] if value.startswith("0x") else value)
        except ValueError:
            raise MalformedPermit(f"Permit field {name} is not hex")
    else:
        raise MalformedPermit(f"Permit field {name} must be bytes or hex")
    if len(raw) != 32:
        raise MalformedPermit(f"Permit field {name} must be 32 bytes, got {len(raw)}")
    return raw

"""Sensor reading record and its binary wire encoding."""

from __future__ import annotations

import struct
import time
from dataclasses import dataclass

_LENGTH = struct.Struct(">H")
_BODY = struct.Struct(">dQI")


class DecodeError(ValueError):
    """Raised when a buffer does not hold a valid encoded reading."""


@dataclass(frozen=True)
class SensorReading:
    """One measurement taken by a sensor."""

    sensor_id: str
    value: float
    timestamp: int
    sequence_num: int

    def to_bytes(self) -> bytes:
        """Encode the reading as a length-prefixed id followed by fixed fields."""
        ident = self.sensor_id.encode("utf-8")
        if len(ident) > 0xFFFF:
            raise ValueError("sensor id is too long to encode")
        try:
            body = _BODY.pack(float(self.value), self.timestamp, self.sequence_num)
        except struct.error as exc:
            raise ValueError(f"reading cannot be encoded: {exc}") from exc
        return _LENGTH.pack(len(ident)) + ident + body

    @classmethod
    def from_bytes(cls, data: bytes) -> "SensorReading":
        """Decode a reading produced by to_bytes."""
        data = bytes(data)
        if len(data) < _LENGTH.size:
            raise DecodeError("buffer too short for sensor id length")
        (length,) = _LENGTH.unpack_from(data)
        end = _LENGTH.size + length
        if len(data) != end + _BODY.size:
            raise DecodeError("buffer length does not match encoded reading")
        try:
            sensor_id = data[_LENGTH.size:end].decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodeError("sensor id is not valid UTF-8") from exc
        value, timestamp, sequence_num = _BODY.unpack_from(data, end)
        return cls(sensor_id, value, timestamp, sequence_num)


def now_ms() -> int:
    """Milliseconds since the Unix epoch."""
    return time.time_ns() // 1_000_000
"""Topic-tagged datagram transport between the publisher and the monitor."""

from __future__ import annotations

import select
import socket
import struct
from typing import List, Tuple

DEFAULT_TOPIC = "SENSOR-TELEMETRY"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 7400

_LENGTH = struct.Struct(">H")
_MAX_DATAGRAM = 65507


def encode_frame(topic: str, payload: bytes) -> bytes:
    """Prefix a payload with its length-prefixed topic name."""
    name = topic.encode("utf-8")
    if not name:
        raise ValueError("topic name must not be empty")
    if len(name) > 0xFFFF:
        raise ValueError("topic name is too long")
    return _LENGTH.pack(len(name)) + name + bytes(payload)


def decode_frame(data: bytes) -> Tuple[str, bytes]:
    """Split a frame into its topic name and payload."""
    data = bytes(data)
    if len(data) < _LENGTH.size:
        raise ValueError("frame too short")
    (length,) = _LENGTH.unpack_from(data)
    end = _LENGTH.size + length
    if length == 0 or len(data) < end:
        raise ValueError("frame has an invalid topic length")
    topic = data[_LENGTH.size:end].decode("utf-8")
    return topic, data[end:]


class TopicWriter:
    """Sends payloads on a named topic to a reader's address."""

    def __init__(self, topic: str = DEFAULT_TOPIC, host: str = DEFAULT_HOST,
                 port: int = DEFAULT_PORT) -> None:
        self.topic = topic
        self._address = (host, port)
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)

    def write(self, payload: bytes) -> None:
        """Send one payload as a single datagram."""
        frame = encode_frame(self.topic, payload)
        if len(frame) > _MAX_DATAGRAM:
            raise ValueError("payload too large for one datagram")
        self._sock.sendto(frame, self._address)

    def close(self) -> None:
        self._sock.close()

    def __enter__(self) -> "TopicWriter":
        return self

    def __exit__(self, *args) -> None:
        self.close()


class TopicReader:
    """Receives payloads published on a named topic."""

    def __init__(self, topic: str = DEFAULT_TOPIC, host: str = DEFAULT_HOST,
                 port: int = DEFAULT_PORT, timeout: float = 0.1) -> None:
        self.topic = topic
        self.timeout = timeout
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            self._sock.bind((host, port))
        except OSError:
            self._sock.close()
            raise

    @property
    def address(self) -> Tuple[str, int]:
        """The host and port the reader is bound to."""
        return self._sock.getsockname()

    def take(self) -> List[bytes]:
        """Return every payload waiting on this topic, waiting up to timeout for the first."""
        received: List[bytes] = []
        wait = self.timeout
        while True:
            ready, _, _ = select.select([self._sock], [], [], wait)
            if not ready:
                break
            data = self._sock.recv(_MAX_DATAGRAM)
            wait = 0
            try:
                topic, payload = decode_frame(data)
            except ValueError:
                continue
            if topic == self.topic:
                received.append(payload)
        return received

    def close(self) -> None:
        self._sock.close()

    def __enter__(self) -> "TopicReader":
        return self

    def __exit__(self, *args) -> None:
        self.close()
import socket
import time

import pytest

from sensorhub.transport import TopicReader, TopicWriter, decode_frame, encode_frame


def _collect(reader, count, deadline=3.0):
    got = []
    end = time.monotonic() + deadline
    while len(got) < count and time.monotonic() < end:
        got.extend(reader.take())
    return got


def test_frame_round_trip():
    frame = encode_frame("SENSOR-TELEMETRY", b"\x01\x02payload")
    assert decode_frame(frame) == ("SENSOR-TELEMETRY", b"\x01\x02payload")


def test_frame_layout():
    assert encode_frame("T", b"x") == b"\x00\x01Tx"


def test_empty_payload_round_trip():
    assert decode_frame(encode_frame("topic", b"")) == ("topic", b"")


@pytest.mark.parametrize("data", [b"", b"\x00", b"\x00\x05ab", b"\x00\x00data"])
def test_malformed_frame_raises(data):
    with pytest.raises(ValueError):
        decode_frame(data)


def test_empty_topic_rejected():
    with pytest.raises(ValueError):
        encode_frame("", b"x")


def test_writer_to_reader_delivers_in_order():
    with TopicReader("SENSOR-TELEMETRY", "127.0.0.1", 0, 0.2) as reader:
        host, port = reader.address
        with TopicWriter("SENSOR-TELEMETRY", host, port) as writer:
            for i in range(3):
                writer.write(bytes([i]))
        got = _collect(reader, 3)
    assert got == [b"\x00", b"\x01", b"\x02"]


def test_reader_ignores_other_topics_and_garbage():
    with TopicReader("A", "127.0.0.1", 0, 0.2) as reader:
        host, port = reader.address
        with TopicWriter("B", host, port) as other:
            other.write(b"ignored")
        raw = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        raw.sendto(b"\x00", (host, port))
        raw.close()
        with TopicWriter("A", host, port) as writer:
            writer.write(b"kept")
        got = _collect(reader, 1)
    assert got == [b"kept"]


def test_take_with_nothing_waiting_is_empty():
    with TopicReader("A", "127.0.0.1", 0, 0.01) as reader:
        assert reader.take() == []


def test_close_releases_socket():
    reader = TopicReader("A", "127.0.0.1", 0, 0.01)
    host, port = reader.address
    assert host == "127.0.0.1"
    assert port > 0
    reader.close()
    with pytest.raises(OSError):
        reader.address
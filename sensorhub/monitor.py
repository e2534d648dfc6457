"""Telemetry monitor: receives readings, tracks latency and sequence gaps."""

from __future__ import annotations

import argparse
import logging
import sys
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, TextIO

from .logsetup import init_logging
from .message import DecodeError, SensorReading, now_ms
from .transport import DEFAULT_HOST, DEFAULT_PORT, DEFAULT_TOPIC, TopicReader

log = logging.getLogger("sensor-hub")

CLEAR_SCREEN = "\033[2J\033[1;1H"


def latency(reading: SensorReading, received_at: int) -> int:
    """Milliseconds between a reading's timestamp and its arrival."""
    return int(received_at) - int(reading.timestamp)


@dataclass
class SensorStats:
    """Running statistics for one sensor's stream."""

    received: int = 0
    expected: int = 0
    gaps: int = 0
    latencies: List[int] = field(default_factory=list)
    latest_value: float = 0.0
    latest_seq: int = 0
    latest_latency: int = 0
    last_seq: Optional[int] = None

    def average_latency(self) -> float:
        """Mean latency in milliseconds, or 0.0 with nothing received."""
        if not self.latencies:
            return 0.0
        return sum(self.latencies) / len(self.latencies)

    def loss_rate(self) -> float:
        """Percentage of expected readings that went missing."""
        if self.expected <= 0:
            return 0.0
        return self.gaps * 100.0 / self.expected


class TelemetryMonitor:
    """Per-sensor bookkeeping of received readings."""

    def __init__(self) -> None:
        self._stats: Dict[str, SensorStats] = {}

    @property
    def stats(self) -> Dict[str, SensorStats]:
        """Statistics keyed by sensor id."""
        return dict(self._stats)

    def record(self, reading: SensorReading, received_at: int) -> int:
        """Account for one received reading and return its latency."""
        lat = latency(reading, received_at)
        stats = self._stats.setdefault(reading.sensor_id, SensorStats())
        current = reading.sequence_num

        stats.latencies.append(lat)
        stats.received += 1
        stats.latest_value = reading.value
        stats.latest_seq = current
        stats.latest_latency = lat

        if stats.last_seq is not None:
            expected_seq = stats.last_seq + 1
            if current != expected_seq:
                stats.gaps += current - expected_seq
            stats.expected += current - stats.last_seq
        else:
            stats.expected = 1
        stats.last_seq = current
        return lat

    def overall(self) -> SensorStats:
        """Statistics summed over every sensor."""
        total = SensorStats()
        for stats in self._stats.values():
            total.received += stats.received
            total.expected += stats.expected
            total.gaps += stats.gaps
            total.latencies.extend(stats.latencies)
        return total

    def render(self) -> str:
        """Return the dashboard table as text."""
        lines = [
            "",
            "======================== TELEMETRY MONITOR DASHBOARD ========================",
            "",
            f"{'Sensor':<15}{'Value':<12}{'Seq':<8}{'Lat(ms)':<12}"
            f"{'Avg Lat':<12}{'Loss %':<12}{'Recv/Exp':<15}",
            "-" * 90,
        ]
        for sensor, stats in sorted(self._stats.items()):
            lines.append(
                f"{sensor:<15}{stats.latest_value:<12.2f}{stats.latest_seq:<8}"
                f"{stats.latest_latency:<12}{stats.average_latency():<12.2f}"
                f"{stats.loss_rate():<12.2f}{stats.received}/{stats.expected}"
            )
        total = self.overall()
        lines += [
            "",
            "=" * 90,
            f"OVERALL: Received: {total.received} | Expected: {total.expected}"
            f" | Lost: {total.gaps} | Loss Rate: {total.loss_rate():.2f}%",
            "=" * 90,
        ]
        return "\n".join(lines) + "\n"


def run(reader, monitor: TelemetryMonitor, refresh_every: int = 10,
        out: Optional[TextIO] = None,
        stop: Optional[threading.Event] = None) -> int:
    """Feed payloads taken from a reader into the monitor until stopped.

    Returns the number of readings recorded.
    """
    stop = stop if stop is not None else threading.Event()
    count = 0
    while not stop.is_set():
        for payload in reader.take():
            received_at = now_ms()
            try:
                reading = SensorReading.from_bytes(payload)
            except DecodeError:
                print("Failed to deserialize the buffer", file=sys.stderr)
                continue
            monitor.record(reading, received_at)
            log.info("PUB sensor=%s value=%s ts=%s rs=%s seq=%s", reading.sensor_id,
                     reading.value, reading.timestamp, received_at, reading.sequence_num)
            count += 1
            if refresh_every and count % refresh_every == 0:
                target = out if out is not None else sys.stdout
                target.write(CLEAR_SCREEN + monitor.render())
                target.flush()
    return count


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Receive telemetry and show the monitor dashboard until interrupted."""
    parser = argparse.ArgumentParser(description="Monitor sensor telemetry.")
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--topic", default=DEFAULT_TOPIC)
    parser.add_argument("--log", default="../logs/async_subscrib_log.txt")
    args = parser.parse_args(argv)

    init_logging(args.log)
    try:
        reader = TopicReader(args.topic, args.host, args.port)
    except OSError as exc:
        print(f"Transport error: {exc}", file=sys.stderr)
        return 1

    with reader:
        try:
            run(reader, TelemetryMonitor())
        except KeyboardInterrupt:
            pass
    return 0
"""Sensor simulation, aggregation and publishing of telemetry readings."""

from __future__ import annotations

import argparse
import enum
import logging
import random
import sys
import threading
import time
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, TextIO

from .logsetup import init_logging
from .message import SensorReading, now_ms
from .safe_queue import SafeQueue
from .transport import DEFAULT_HOST, DEFAULT_PORT, DEFAULT_TOPIC, TopicWriter

log = logging.getLogger("sensor-hub")

CLEAR_SCREEN = "\033[2J\033[1;1H"
DEFAULT_TOLERANCE_MS = 1000


class Sensor:
    """A simulated sensor producing uniformly distributed readings into a queue."""

    def __init__(self, sensor_id: str, low: float, high: float,
                 queue: SafeQueue, interval: float = 0.1,
                 rng: Optional[random.Random] = None) -> None:
        self.sensor_id = sensor_id
        self.low = low
        self.high = high
        self.queue = queue
        self.interval = interval
        self._rng = rng if rng is not None else random.Random()
        self._sequence = 0
        self._lock = threading.Lock()
        self._stopped = threading.Event()

    @property
    def stopped(self) -> bool:
        """Whether a stop has been requested."""
        return self._stopped.is_set()

    def read(self) -> SensorReading:
        """Take one measurement, advancing this sensor's sequence number."""
        with self._lock:
            sequence = self._sequence
            self._sequence += 1
        return SensorReading(
            sensor_id=self.sensor_id,
            value=self._rng.uniform(self.low, self.high),
            timestamp=now_ms(),
            sequence_num=sequence,
        )

    def run(self) -> None:
        """Push readings into the queue until stopped."""
        while not self._stopped.is_set():
            self.queue.push(self.read())
            self._stopped.wait(self.interval)
        log.info("%s shutting down", self.sensor_id)

    def stop(self) -> None:
        """Ask the sensor loop to finish."""
        self._stopped.set()


def group_by_timestamp(readings: Iterable[SensorReading],
                       tolerance_ms: int = DEFAULT_TOLERANCE_MS) -> List[List[SensorReading]]:
    """Split readings into groups lying within tolerance of each group's first reading.

    Groups are formed in order: the earliest remaining reading sets the
    reference timestamp and every remaining reading close enough to it joins.
    """
    pending = list(readings)
    groups: List[List[SensorReading]] = []
    while pending:
        reference = pending[0].timestamp
        group = [r for r in pending if abs(r.timestamp - reference) <= tolerance_ms]
        pending = [r for r in pending if abs(r.timestamp - reference) > tolerance_ms]
        groups.append(group)
    return groups


class PublisherDashboard:
    """Latest published state per sensor."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._latest: Dict[str, SensorReading] = {}
        self._counts: Dict[str, int] = {}

    def record(self, reading: SensorReading) -> None:
        """Note that a reading was published."""
        with self._lock:
            self._latest[reading.sensor_id] = reading
            self._counts[reading.sensor_id] = self._counts.get(reading.sensor_id, 0) + 1

    def count(self, sensor_id: str) -> int:
        """Number of readings published for one sensor."""
        with self._lock:
            return self._counts.get(sensor_id, 0)

    def total(self) -> int:
        """Number of readings published over all sensors."""
        with self._lock:
            return sum(self._counts.values())

    def render(self) -> str:
        """Return the dashboard table as text."""
        with self._lock:
            rows = sorted(self._latest.items())
            counts = dict(self._counts)
        lines = [
            "",
            "==================== PUBLISHER DASHBOARD ====================",
            "",
            f"{'Sensor':<15}{'Value':<12}{'Timestamp':<18}{'Seq':<8}{'Published':<12}",
            "-" * 70,
        ]
        for sensor, reading in rows:
            lines.append(
                f"{sensor:<15}{reading.value:<12.2f}{reading.timestamp:<18}"
                f"{reading.sequence_num:<8}{counts[sensor]:<12}"
            )
        lines += [
            "",
            "=" * 70,
            f"TOTAL PUBLISHED: {sum(counts.values())} messages",
            "=" * 70,
        ]
        return "\n".join(lines) + "\n"


class Aggregator:
    """Drains sensor queues, groups readings by time and publishes them encoded."""

    def __init__(self, queues: Sequence[SafeQueue],
                 publish: Callable[[bytes], None],
                 dashboard: Optional[PublisherDashboard] = None,
                 tolerance_ms: int = DEFAULT_TOLERANCE_MS,
                 pause: float = 0.5,
                 refresh_every: int = 5,
                 out: Optional[TextIO] = None) -> None:
        self.queues = list(queues)
        self.publish = publish
        self.dashboard = dashboard if dashboard is not None else PublisherDashboard()
        self.tolerance_ms = tolerance_ms
        self.pause = pause
        self.refresh_every = refresh_every
        self.out = out
        self.published = 0
        self._pending: List[SensorReading] = []
        self._stopped = threading.Event()

    @property
    def stopped(self) -> bool:
        """Whether a stop has been requested."""
        return self._stopped.is_set()

    def _emit(self, reading: SensorReading) -> None:
        log.info("PUB sensor=%s value=%s ts=%s seq=%s", reading.sensor_id,
                 reading.value, reading.timestamp, reading.sequence_num)
        self.publish(reading.to_bytes())
        self.dashboard.record(reading)
        self.published += 1
        if self.refresh_every and self.published % self.refresh_every == 0:
            out = self.out if self.out is not None else sys.stdout
            out.write(CLEAR_SCREEN + self.dashboard.render())
            out.flush()

    def poll(self) -> int:
        """Take one reading from each queue and publish everything pending.

        Returns the number of readings published.
        """
        for queue in self.queues:
            reading = queue.pop()
            if reading is not None:
                self._pending.append(reading)
        count = 0
        for group in group_by_timestamp(self._pending, self.tolerance_ms):
            for reading in group:
                self._emit(reading)
                count += 1
            if self.pause:
                time.sleep(self.pause)
        self._pending.clear()
        return count

    def run(self) -> None:
        """Poll the queues until stopped."""
        while not self._stopped.is_set():
            if not self.poll():
                self._stopped.wait(0.001)

    def stop(self) -> None:
        """Ask the aggregator loop to finish."""
        self._stopped.set()


class Command(enum.Enum):
    """Operator commands accepted on the publisher's console."""

    STOP_TEMPERATURE = "T"
    STOP_PRESSURE = "P"
    STOP_FLOW = "F"
    SHUTDOWN = ""
    UNKNOWN = "?"


_SENSOR_COMMANDS = {
    "T": Command.STOP_TEMPERATURE,
    "P": Command.STOP_PRESSURE,
    "F": Command.STOP_FLOW,
}

_STOP_MESSAGES = {
    Command.STOP_TEMPERATURE: "Temperature sensor stop requested",
    Command.STOP_PRESSURE: "Pressure sensor stop requested",
    Command.STOP_FLOW: "Flow sensor stop requested",
}


def interpret_command(line: str) -> Command:
    """Map a console line to a command; a blank line means shut everything down."""
    text = line.lstrip()
    if not text:
        return Command.SHUTDOWN
    return _SENSOR_COMMANDS.get(text[0].upper(), Command.UNKNOWN)


def _shutdown_all(sensors: Mapping[Command, Sensor], aggregator: Aggregator,
                  grace: float) -> None:
    for sensor in sensors.values():
        sensor.stop()
    time.sleep(grace)
    aggregator.stop()


def interactive_shutdown(sensors: Mapping[Command, Sensor], aggregator: Aggregator,
                         stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None,
                         grace: float = 0.2) -> None:
    """Read console commands that stop sensors, then stop the aggregator."""
    stdin = stdin if stdin is not None else sys.stdin
    stdout = stdout if stdout is not None else sys.stdout
    log.info("Interactive control: (T/P/F to stop sensors, ENTER to shutdown all)")
    while True:
        stdout.write("Command> ")
        stdout.flush()
        line = stdin.readline()
        if not line:
            log.info("stdin closed - requesting full shutdown")
            _shutdown_all(sensors, aggregator, grace)
            return
        command = interpret_command(line.rstrip("\r\n"))
        if command is Command.SHUTDOWN:
            log.info("ENTER pressed - full shutdown")
            _shutdown_all(sensors, aggregator, grace)
            return
        if command is Command.UNKNOWN:
            stdout.write(f"Unknown command: '{line.lstrip()[0]}' (T,P,F or Enter)\n")
        else:
            sensor = sensors.get(command)
            if sensor is not None:
                sensor.stop()
            log.info(_STOP_MESSAGES[command])
        if all(sensor.stopped for sensor in sensors.values()):
            log.info("All sensors stopped - allowing aggregator to drain then stopping it")
            time.sleep(grace)
            aggregator.stop()
            return


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the simulated sensors and publish their readings until told to stop."""
    parser = argparse.ArgumentParser(description="Publish simulated sensor telemetry.")
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--topic", default=DEFAULT_TOPIC)
    parser.add_argument("--log", default="../logs/async_publish_log.txt")
    args = parser.parse_args(argv)

    init_logging(args.log)
    queues = {command: SafeQueue() for command in _STOP_MESSAGES}
    sensors = {
        Command.STOP_TEMPERATURE: Sensor("Temp-Sensor", 20.0, 100.0,
                                         queues[Command.STOP_TEMPERATURE]),
        Command.STOP_PRESSURE: Sensor("Press-Sensor", 220.0, 350.0,
                                      queues[Command.STOP_PRESSURE]),
        Command.STOP_FLOW: Sensor("flow-Sensor", 500.0, 1000.0, queues[Command.STOP_FLOW]),
    }
    try:
        writer = TopicWriter(args.topic, args.host, args.port)
    except OSError as exc:
        print(f"===[PUBLISHER] Exception : {exc}", file=sys.stderr)
        return 1

    with writer:
        print("===[PUBLISHER] Successfully created Publisher Entity")
        print("===[PUBLISHER] Writer created")
        print("===[PUBLISHER] STARTED")
        aggregator = Aggregator(list(queues.values()), writer.write)
        threads = [threading.Thread(target=sensor.run, daemon=True)
                   for sensor in sensors.values()]
        threads.append(threading.Thread(target=aggregator.run, daemon=True))
        for thread in threads:
            thread.start()

        print("Press ENTER to stop Publishing")
        print("Press T to stop temperature sensor")
        print("Press P to stop pressure sensor")
        print("Press F to stop flow sensor")
        interactive_shutdown(sensors, aggregator)

        print("\n===[PUBLISHER] STOPPED")
        for thread in threads:
            thread.join()
    return 0
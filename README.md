# sensorhub

sensorhub simulates a small sensor network. It has two programs: a **publisher** and a **monitor**.

The publisher runs three simulated sensors:

| Sensor id | Value range |
|-----------|-------------|
| `Temp-Sensor` | 20.0 to 100.0 |
| `Press-Sensor` | 220.0 to 350.0 |
| `flow-Sensor` | 500.0 to 1000.0 |

Every 0.1 s, each sensor pushes a reading onto its own thread-safe queue. A reading has a value, a millisecond timestamp and a sequence number.

An aggregator takes readings from the queues and groups those whose timestamps lie within 1000 ms of each other. It encodes each reading as a compact binary message and sends it on the `SENSOR-TELEMETRY` topic. Every five published readings it redraws a dashboard in the terminal. The dashboard shows the latest value, timestamp and sequence number of each sensor, how many readings each sensor has published, and the total.

The monitor listens on the same topic and decodes each message. For each sensor it tracks:

- latency (arrival time minus reading timestamp), both the latest value and the average
- gaps in sequence numbers, shown as a loss percentage
- readings received against readings expected from the sequence numbers

Every ten readings the monitor redraws its dashboard, with a per-sensor table and an overall line.

## Installation

```
pip install .
```

To include the test dependencies:

```
pip install .[test]
```

## Running

Start the monitor in one terminal:

```
sensorhub-monitor
```

Then start the publisher in another:

```
sensorhub-publisher
```

Both commands take the same options:

| Option | Default |
|--------|---------|
| `--host` | `127.0.0.1` |
| `--port` | `7400` |
| `--topic` | `SENSOR-TELEMETRY` |
| `--log` | publisher: `../logs/async_publish_log.txt`; monitor: `../logs/async_subscrib_log.txt` |

The monitor binds to the host and port. The publisher sends to them.

### Publisher commands

The publisher reads commands from standard input. Only the first character of a line counts, and case does not matter.

| Input | Effect |
|-------|--------|
| `T` | stop the temperature sensor |
| `P` | stop the pressure sensor |
| `F` | stop the flow sensor |
| empty line (ENTER) | stop all sensors and shut down |

Any other input prints an "Unknown command" message.

The aggregator stops after a short grace period in two cases: when every sensor has been stopped, or when the input is closed. The publisher then exits.

The monitor runs until it is interrupted with Ctrl-C.

### Logs

Both programs log each reading to a size-rotated file: 1 MiB per file, with three backups. The directory is created if it does not exist. If the file cannot be opened, the error is printed to stderr and the program runs without a log file.

## Library use

- `sensorhub.safe_queue.SafeQueue`: a lock-protected FIFO queue.
  - `push(item)` adds an item.
  - `pop()` returns the front item, or `None` if the queue is empty.
  - `describe()` returns a one-line summary of the queued values.
  - `len()` and truth testing work on the queue.
- `sensorhub.message.SensorReading`: a frozen dataclass with `sensor_id`, `value`, `timestamp` and `sequence_num`.
  - `to_bytes()` encodes a reading and `SensorReading.from_bytes()` decodes one.
  - A malformed buffer raises `DecodeError`, which is a `ValueError`.
  - `now_ms()` returns the current epoch time in milliseconds.
- `sensorhub.transport`:
  - `encode_frame` and `decode_frame` add and remove a topic header on a payload.
  - `TopicWriter` sends each payload as one UDP datagram.
  - `TopicReader.take()` returns all waiting payloads for its topic. It waits up to `timeout` seconds for the first one.
  - Both classes are context managers.
- `sensorhub.logsetup.init_logging(path, name)` sets up the rotating file logger.
- `sensorhub.publisher`:
  - `Sensor`: a simulated sensor.
  - `group_by_timestamp(readings, tolerance_ms)`: groups readings by timestamp tolerance.
  - `Aggregator`: with `poll()`, `run()` and `stop()`.
  - `PublisherDashboard`: tracks what has been published.
  - `interpret_command` and `interactive_shutdown`: the console commands.
- `sensorhub.monitor`:
  - `TelemetryMonitor.record(reading, received_at)` updates the per-sensor `SensorStats` and returns the latency.
  - `overall()` sums the statistics over all sensors.
  - `render()` returns the dashboard text.
  - `run(reader, monitor, ...)` feeds a reader's payloads into a monitor.

## Limitations

Readings travel as plain UDP datagrams to a single address. There is no discovery, no delivery guarantee, no retransmission and no history for late joiners. Readings sent while the monitor is not running are lost. The monitor reports lost readings as sequence gaps. Readings are not stored anywhere except in the log files.

## Tests

```
pytest
```
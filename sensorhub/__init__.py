"""Simulated sensor telemetry: thread-safe queues, a binary reading format, a UDP topic transport, a publisher and a monitor."""

__version__ = "0.1.0"
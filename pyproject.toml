[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sensorhub"
version = "0.1.0"
description = "Simulated sensor telemetry publisher and monitor with sequence-gap and latency tracking"
requires-python = ">=3.10"
dependencies = []
keywords = ["telemetry", "sensors", "monitoring", "publish-subscribe", "dashboard"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
sensorhub-publisher = "sensorhub.publisher:main"
sensorhub-monitor = "sensorhub.monitor:main"

[tool.hatch.build.targets.wheel]
packages = ["sensorhub"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

"""fanrun: bounded-concurrency remote task fan-out."""

__version__ = "0.3.0"

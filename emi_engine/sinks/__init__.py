"""Output sinks for exporting schedules."""

from emi_engine.sinks.console import ConsoleSink
from emi_engine.sinks.json_file import JsonFileSink

__all__ = ["ConsoleSink", "JsonFileSink"]

"""Output sinks for exporting settlement events."""

from asset_settlement.sinks.console import ConsoleSink
from asset_settlement.sinks.json_file import JsonFileSink
from asset_settlement.sinks.kafka import KafkaSink

__all__ = ["ConsoleSink", "JsonFileSink", "KafkaSink"]

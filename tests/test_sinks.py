"""Tests for sinks and serialization."""

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from confluent_kafka import KafkaException

from asset_settlement.exceptions import SinkError
from asset_settlement.models import Auction, AuctionStatus, Event
from asset_settlement.sinks.console import ConsoleSink
from asset_settlement.sinks.json_file import JsonFileSink
from asset_settlement.sinks.serialization import serialize_value, to_dict

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_event(event_type: str = "auction.bid_placed", source: str = "auction") -> Event:
    return Event(
        event_id="evt-001",
        event_type=event_type,
        event_time=NOW,
        source=source,
        subject="asset-0001",
        data={"bidder": "bob", "amount": 15},
    )


def make_auction() -> Auction:
    return Auction(
        asset_id="asset-0001",
        seller="alice",
        min_bid=10,
        start_time=NOW,
        end_time=NOW + timedelta(hours=1),
    )


@pytest.fixture
def mock_producer() -> MagicMock:
    producer = MagicMock()
    producer.flush.return_value = 0
    return producer


class TestSerialization:
    """Tests for serialization helpers."""

    def test_event_to_dict(self) -> None:
        data = to_dict(make_event())

        assert data["event_time"] == "2024-01-01T00:00:00+00:00"
        assert data["data"] == {"bidder": "bob", "amount": 15}

    def test_enum_and_nested_dataclass(self) -> None:
        data = to_dict(make_auction())

        assert data["status"] == "OPEN"
        assert data["settlement"] is None

    def test_serialize_values(self) -> None:
        assert serialize_value(timedelta(hours=1)) == 3600.0
        assert serialize_value(AuctionStatus.SETTLED) == "SETTLED"
        assert sorted(serialize_value({"b", "a"})) == ["a", "b"]
        assert serialize_value(("x", NOW)) == ["x", "2024-01-01T00:00:00+00:00"]

    def test_to_dict_other_type(self) -> None:
        assert to_dict(42) == {"value": "42"}


class TestConsoleSink:
    """Tests for ConsoleSink."""

    def test_init_default(self) -> None:
        sink = ConsoleSink()

        assert sink.pretty is True
        assert sink.max_records is None
        assert sink._counts == {}

    def test_write_batch(self, capsys: pytest.CaptureFixture) -> None:
        sink = ConsoleSink(pretty=False)

        sink.write_batch("events", [make_event(), make_event()])
        captured = capsys.readouterr()

        assert "events" in captured.out
        assert "2 records" in captured.out
        assert '"event_type": "auction.bid_placed"' in captured.out
        assert sink._counts["events"] == 2

    def test_max_records(self, capsys: pytest.CaptureFixture) -> None:
        sink = ConsoleSink(max_records=1)

        sink.write_batch("events", [make_event()] * 3)
        captured = capsys.readouterr()

        assert "... and 2 more records" in captured.out

    def test_close(self, capsys: pytest.CaptureFixture) -> None:
        sink = ConsoleSink()
        sink.write_batch("auctions", [make_auction()])
        capsys.readouterr()

        sink.close()
        captured = capsys.readouterr()

        assert "Console Sink Summary" in captured.out
        assert "auctions: 1 records" in captured.out


class TestJsonFileSink:
    """Tests for JsonFileSink."""

    def test_init_creates_directory(self, tmp_path: Path) -> None:
        output_dir = tmp_path / "nested" / "out"

        JsonFileSink(output_dir)

        assert output_dir.exists()

    def test_write_batch(self, tmp_path: Path) -> None:
        sink = JsonFileSink(tmp_path, pretty=True)

        sink.write_batch("auctions", [make_auction()])

        data = json.loads((tmp_path / "auctions.json").read_text())
        assert data[0]["asset_id"] == "asset-0001"
        assert data[0]["status"] == "OPEN"

    def test_write_lines_appends(self, tmp_path: Path) -> None:
        sink = JsonFileSink(tmp_path)

        sink.write_lines("auction.bid_placed", [make_event()])
        path = sink.write_lines("auction.bid_placed", [make_event()])

        assert path.name == "auction_bid_placed.jsonl"
        lines = path.read_text().splitlines()
        assert len(lines) == 2
        assert json.loads(lines[0])["subject"] == "asset-0001"
        assert sink._counts["auction.bid_placed"] == 2

    def test_write_failure_raises_sink_error(self, tmp_path: Path) -> None:
        sink = JsonFileSink(tmp_path)
        (tmp_path / "events.json").mkdir()

        with pytest.raises(SinkError):
            sink.write_batch("events", [make_event()])

    def test_close(self, tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
        sink = JsonFileSink(tmp_path)
        sink.write_batch("events", [make_event()])

        sink.close()
        captured = capsys.readouterr()

        assert "events: 1 records" in captured.out


class TestKafkaSink:
    """Tests for KafkaSink."""

    def test_producer_config_from_kafka_config(self) -> None:
        from asset_settlement.config import KafkaConfig
        from asset_settlement.sinks.kafka import ProducerConfig

        config = ProducerConfig.from_kafka_config(KafkaConfig(bootstrap_servers="kafka:9092", acks="1"))

        assert config.bootstrap_servers == "kafka:9092"
        assert config.acks == "1"
        assert config.topic_prefix == "dev.settlement"

    def test_producer_stats_success_rate(self) -> None:
        from asset_settlement.sinks.kafka import ProducerStats

        assert ProducerStats(sent=10, delivered=9, failed=1).success_rate == 0.9
        assert ProducerStats().success_rate == 0.0

    @patch("asset_settlement.sinks.kafka.Producer")
    def test_init_with_string(self, mock_producer_class: MagicMock) -> None:
        from asset_settlement.sinks.kafka import KafkaSink

        sink = KafkaSink("localhost:9092")

        assert sink.config.bootstrap_servers == "localhost:9092"
        conf = mock_producer_class.call_args[0][0]
        assert conf["acks"] == "all"

    @patch("asset_settlement.sinks.kafka.Producer")
    def test_publish_events_routes_by_source(
        self, mock_producer_class: MagicMock, mock_producer: MagicMock
    ) -> None:
        from asset_settlement.sinks.kafka import KafkaSink

        mock_producer_class.return_value = mock_producer
        sink = KafkaSink("localhost:9092")

        sink.publish_events([make_event(), make_event("loan.repaid", "lending")])

        topics = [c.kwargs["topic"] for c in mock_producer.produce.call_args_list]
        assert topics == ["dev.settlement.auction", "dev.settlement.lending"]
        assert mock_producer.produce.call_args.kwargs["key"] == b"asset-0001"
        assert sink.stats.sent == 2
        mock_producer.flush.assert_called_once()

    @patch("asset_settlement.sinks.kafka.Producer")
    def test_send_dataclass_keyed_by_asset(
        self, mock_producer_class: MagicMock, mock_producer: MagicMock
    ) -> None:
        from asset_settlement.sinks.kafka import KafkaSink

        mock_producer_class.return_value = mock_producer
        sink = KafkaSink("localhost:9092")

        sink.send("dev.settlement.auctions", make_auction())

        call_kwargs = mock_producer.produce.call_args.kwargs
        assert call_kwargs["key"] == b"asset-0001"
        assert json.loads(call_kwargs["value"])["seller"] == "alice"

    @patch("asset_settlement.sinks.kafka.Producer")
    def test_send_dict_without_key(self, mock_producer_class: MagicMock, mock_producer: MagicMock) -> None:
        from asset_settlement.sinks.kafka import KafkaSink

        mock_producer_class.return_value = mock_producer
        sink = KafkaSink("localhost:9092")

        sink.send("topic", {"id": 1})

        assert mock_producer.produce.call_args.kwargs["key"] is None

    @patch("asset_settlement.sinks.kafka.Producer")
    def test_buffer_full_raises_sink_error(
        self, mock_producer_class: MagicMock, mock_producer: MagicMock
    ) -> None:
        from asset_settlement.sinks.kafka import KafkaSink

        mock_producer.produce.side_effect = BufferError("queue full")
        mock_producer_class.return_value = mock_producer
        sink = KafkaSink("localhost:9092")

        with pytest.raises(SinkError):
            sink.send("topic", make_event())

        assert sink.stats.sent == 0

    @patch("asset_settlement.sinks.kafka.Producer")
    def test_kafka_exception_raises_sink_error(
        self, mock_producer_class: MagicMock, mock_producer: MagicMock
    ) -> None:
        from asset_settlement.sinks.kafka import KafkaSink

        mock_producer.produce.side_effect = KafkaException("broker down")
        mock_producer_class.return_value = mock_producer
        sink = KafkaSink("localhost:9092")

        with pytest.raises(SinkError):
            sink.send("topic", make_event())

    @patch("asset_settlement.sinks.kafka.Producer")
    def test_write_batch(self, mock_producer_class: MagicMock, mock_producer: MagicMock) -> None:
        from asset_settlement.sinks.kafka import KafkaSink

        mock_producer_class.return_value = mock_producer
        sink = KafkaSink("localhost:9092")

        sink.write_batch("dev.settlement.auctions", [make_auction()] * 3)

        assert mock_producer.produce.call_count == 3
        mock_producer.flush.assert_called_once()

    @patch("asset_settlement.sinks.kafka.Producer")
    def test_delivery_callback(self, mock_producer_class: MagicMock) -> None:
        from asset_settlement.sinks.kafka import KafkaSink

        sink = KafkaSink("localhost:9092")
        msg = MagicMock()
        msg.topic.return_value = "dev.settlement.auction"
        msg.partition.return_value = 0
        msg.offset.return_value = 1

        sink._delivery_callback(None, msg)
        sink._delivery_callback("timeout", msg)

        assert sink.stats.delivered == 1
        assert sink.stats.failed == 1

    @patch("asset_settlement.sinks.kafka.Producer")
    def test_close_flushes(self, mock_producer_class: MagicMock, mock_producer: MagicMock) -> None:
        from asset_settlement.sinks.kafka import KafkaSink

        mock_producer_class.return_value = mock_producer
        sink = KafkaSink("localhost:9092")

        sink.close()

        mock_producer.flush.assert_called_once_with(30.0)

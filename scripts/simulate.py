#!/usr/bin/env python3
"""Run a settlement simulation and export its event log.

Usage::

    python scripts/simulate.py lending --borrowers 20 --sink json --output-dir local
    python scripts/simulate.py auction --sellers 5 --bidders 10 --sink console
    python scripts/simulate.py auction --sink kafka --kafka-bootstrap localhost:9092
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from asset_settlement.engine import SettlementEngine
from asset_settlement.logging import setup_logging
from asset_settlement.scenarios import AuctionScenario, LendingScenario
from asset_settlement.sinks import ConsoleSink, JsonFileSink, KafkaSink

logger = logging.getLogger("simulate")


def export(engine: SettlementEngine, args: argparse.Namespace) -> None:
    """Write the event log through the selected sink."""
    events = list(engine.events)

    if args.sink == "console":
        sink = ConsoleSink(pretty=not args.compact, max_records=args.max_records)
        sink.write_batch("events", events)
        sink.close()
    elif args.sink == "json":
        sink = JsonFileSink(args.output_dir, pretty=not args.compact)
        sink.write_batch("events", events)
        sink.write_batch("loans", engine.lending.loans())
        sink.write_batch("auctions", engine.auction.auctions())
        sink.close()
    else:
        sink = KafkaSink(args.kafka_bootstrap)
        sink.publish_events(events)
        sink.close()


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Simulate lending or auction activity")
    parser.add_argument("scenario", choices=["lending", "auction"], help="Scenario to run")
    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Random seed for reproducibility (default: 42)",
    )
    parser.add_argument(
        "--borrowers",
        type=int,
        default=10,
        help="Number of borrowers for the lending scenario (default: 10)",
    )
    parser.add_argument(
        "--late-rate",
        type=float,
        default=0.2,
        help="Share of borrowers repaying after the deadline (default: 0.2)",
    )
    parser.add_argument(
        "--default-rate",
        type=float,
        default=0.1,
        help="Share of borrowers defaulting (default: 0.1)",
    )
    parser.add_argument(
        "--sellers",
        type=int,
        default=5,
        help="Number of auctions for the auction scenario (default: 5)",
    )
    parser.add_argument(
        "--bidders",
        type=int,
        default=8,
        help="Number of bidders for the auction scenario (default: 8)",
    )
    parser.add_argument(
        "--sink",
        choices=["console", "json", "kafka"],
        default="console",
        help="Where to export the event log (default: console)",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("output"),
        help="Directory for the json sink (default: output)",
    )
    parser.add_argument(
        "--kafka-bootstrap",
        type=str,
        default="localhost:9092",
        help="Kafka bootstrap servers",
    )
    parser.add_argument("--max-records", type=int, default=None, help="Console sink record limit")
    parser.add_argument("--compact", action="store_true", help="Disable pretty-printed JSON")
    parser.add_argument("--log-level", default="INFO", help="Log level (default: INFO)")
    parser.add_argument("--json-logs", action="store_true", help="Emit logs as JSON")
    args = parser.parse_args()

    setup_logging(args.log_level, "json" if args.json_logs else "standard")

    if args.scenario == "lending":
        scenario = LendingScenario(
            num_borrowers=args.borrowers,
            late_rate=args.late_rate,
            default_rate=args.default_rate,
            seed=args.seed,
        )
    else:
        scenario = AuctionScenario(
            num_sellers=args.sellers,
            num_bidders=args.bidders,
            seed=args.seed,
        )

    engine = scenario.generate()
    logger.info("Summary: %s", engine.summary())
    export(engine, args)


if __name__ == "__main__":
    main()

"""Configuration management for asset-settlement."""

from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any

from asset_settlement.exceptions import ConfigurationError

BASIS_POINTS = 10_000


@dataclass
class LendingConfig:
    """Installment lending configuration."""

    loan_duration: timedelta = timedelta(days=30)
    installment_count: int = 4
    auto_release: bool = True
    liquidation_recipient: str | None = None  # None: the liquidating administrator
    module_id: str = "lending"  # also the lending pool account

    def validate(self) -> None:
        """Reject unusable lending parameters."""
        if self.installment_count <= 0:
            raise ConfigurationError(f"installment_count must be positive, got {self.installment_count}")
        if self.loan_duration <= timedelta(0):
            raise ConfigurationError("loan_duration must be positive")


@dataclass
class AuctionConfig:
    """Timed auction configuration."""

    min_duration: timedelta = timedelta(hours=1)
    fee_bps: int = 250  # 2.5%
    treasury: str = "treasury"
    module_id: str = "auction"  # also the bid escrow account

    def validate(self) -> None:
        """Reject unusable auction parameters."""
        if not 0 <= self.fee_bps <= BASIS_POINTS:
            raise ConfigurationError(f"fee_bps must be within 0..{BASIS_POINTS}, got {self.fee_bps}")
        if self.min_duration < timedelta(0):
            raise ConfigurationError("min_duration cannot be negative")
        if not self.treasury:
            raise ConfigurationError("treasury account is required")


@dataclass
class KafkaConfig:
    """Kafka producer configuration for event export."""

    bootstrap_servers: str = "localhost:9092"
    acks: str = "all"
    batch_size: int = 16384
    linger_ms: int = 5
    compression: str = "snappy"
    retries: int = 3
    topic_prefix: str = "dev.settlement"

    def to_dict(self) -> dict[str, Any]:
        """Convert to confluent-kafka config dict."""
        return {
            "bootstrap.servers": self.bootstrap_servers,
            "acks": self.acks,
            "batch.size": self.batch_size,
            "linger.ms": self.linger_ms,
            "compression.type": self.compression,
            "retries": self.retries,
        }


@dataclass
class OutputConfig:
    """Output configuration."""

    json_output_dir: Path = field(default_factory=lambda: Path("output"))
    pretty_json: bool = False


@dataclass
class ScenarioConfig:
    """Configuration for simulation runs."""

    name: str
    num_participants: int = 10
    num_assets: int = 10
    starting_balance: int = 10_000
    late_rate: float = 0.2
    default_rate: float = 0.1
    labels: dict[str, Any] = field(default_factory=dict)


@dataclass
class EngineConfig:
    """Main configuration for asset-settlement."""

    administrators: set[str] = field(default_factory=lambda: {"admin"})
    lending: LendingConfig = field(default_factory=LendingConfig)
    auction: AuctionConfig = field(default_factory=AuctionConfig)
    custodian_id: str = "custodian"
    kafka: KafkaConfig = field(default_factory=KafkaConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    scenario: ScenarioConfig | None = None
    seed: int | None = None
    log_level: str = "INFO"

    def validate(self) -> None:
        """Validate the whole configuration tree."""
        if not self.administrators:
            raise ConfigurationError("at least one administrator is required")
        self.lending.validate()
        self.auction.validate()
        module_ids = {self.custodian_id, self.lending.module_id, self.auction.module_id}
        if len(module_ids) != 3:
            raise ConfigurationError("custodian, lending and auction need distinct identities")

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Create config from environment variables."""
        import os

        admins_str = os.getenv("SETTLEMENT_ADMINS", "admin")
        administrators = {a.strip() for a in admins_str.split(",") if a.strip()}

        lending = LendingConfig(
            loan_duration=timedelta(days=float(os.getenv("LOAN_DURATION_DAYS", "30"))),
            installment_count=int(os.getenv("LOAN_INSTALLMENTS", "4")),
            auto_release=os.getenv("LOAN_AUTO_RELEASE", "true").lower() == "true",
            liquidation_recipient=os.getenv("LIQUIDATION_RECIPIENT") or None,
        )

        auction = AuctionConfig(
            min_duration=timedelta(seconds=float(os.getenv("AUCTION_MIN_DURATION_SECONDS", "3600"))),
            fee_bps=int(os.getenv("AUCTION_FEE_BPS", "250")),
            treasury=os.getenv("TREASURY_ACCOUNT", "treasury"),
        )

        kafka = KafkaConfig(
            bootstrap_servers=os.getenv("KAFKA_BOOTSTRAP_SERVERS", "localhost:9092"),
            acks=os.getenv("KAFKA_ACKS", "all"),
            topic_prefix=os.getenv("TOPIC_PREFIX", "dev.settlement"),
        )

        output = OutputConfig(
            json_output_dir=Path(os.getenv("OUTPUT_DIR", "output")),
            pretty_json=os.getenv("PRETTY_JSON", "false").lower() == "true",
        )

        config = cls(
            administrators=administrators,
            lending=lending,
            auction=auction,
            kafka=kafka,
            output=output,
            seed=int(os.getenv("SEED")) if os.getenv("SEED") else None,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )
        config.validate()
        return config

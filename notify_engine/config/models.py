"""Configuration schema models using Pydantic."""

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .duration import DurationParseError, parse_duration

MIN_SWEEP_INTERVAL_SECONDS = 30
MAX_SWEEP_INTERVAL_SECONDS = 86400


class TransportType(str, Enum):
    """Supported delivery transports."""

    SMTP = "smtp"
    HTTP = "http"
    LOG = "log"
    SIMULATED = "simulated"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


class TransportConfig(BaseModel):
    """Delivery transport settings. Secrets come from the environment."""

    type: TransportType = Field(TransportType.LOG, description="Transport adapter to use")
    timeout_seconds: float = Field(
        30.0, gt=0, le=300, description="Upper bound for a single transport call (seconds)"
    )
    use_tls: bool = Field(True, description="Use STARTTLS for SMTP connections")
    sender_name: Optional[str] = Field(
        None, description="Display name in the From header (overrides SMTP_SENDER_NAME)"
    )
    sender_email: Optional[str] = Field(None, description="From address for SMTP")
    endpoint: Optional[str] = Field(
        None, description="Provider URL for the http transport (overrides NOTIFY_API_URL)"
    )
    simulated_success_rate: float = Field(
        0.9, ge=0.0, le=1.0, description="Success ratio of the simulated transport"
    )
    simulated_latency_seconds: float = Field(
        1.0, ge=0.0, le=60.0, description="Artificial delay of the simulated transport"
    )

    model_config = {"use_enum_values": True}

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, v: Optional[str]) -> Optional[str]:
        """Require an http(s) URL when an endpoint is given."""
        if v is None:
            return v
        stripped = v.strip()
        if not stripped.startswith(("http://", "https://")):
            raise ValueError(f"endpoint must be an http(s) URL, got: {v!r}")
        return stripped


class HistoryConfig(BaseModel):
    """Delivery history query settings."""

    default_limit: int = Field(
        50, ge=0, le=1000, description="Records returned by history queries by default"
    )


class LinksConfig(BaseModel):
    """URLs inserted into messages by the convenience senders."""

    dashboard_url: str = Field(
        "https://talentbridge.com/student/applications",
        description="Where recipients can review their applications",
    )
    calendar_url: str = Field(
        "https://talentbridge.com/calendar/add",
        description="Add-to-calendar link for scheduled interviews",
    )
    reschedule_url: str = Field(
        "https://talentbridge.com/interview/reschedule",
        description="Interview reschedule link",
    )

    @field_validator("dashboard_url", "calendar_url", "reschedule_url")
    @classmethod
    def strip_url(cls, v: str) -> str:
        """Strip whitespace and reject empty URLs."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("URL cannot be empty")
        return stripped


class StorageConfig(BaseModel):
    """Durable storage settings. No database URL means in-memory stores."""

    database_url: Optional[str] = Field(
        None, description="SQLAlchemy URL (overridden by DATABASE_URL)"
    )


class SweeperConfig(BaseModel):
    """Settings for the periodic stale-pending sweep."""

    interval: str = Field("5m", description="How often the sweep runs")
    stale_after: str = Field("10m", description="Age after which a pending record is stale")

    # Computed fields
    interval_seconds: Optional[int] = None
    stale_after_seconds: Optional[int] = None

    @field_validator("interval")
    @classmethod
    def validate_interval(cls, v: str) -> str:
        """Validate the sweep interval is between 30 seconds and a day."""
        try:
            seconds = parse_duration(v)
        except DurationParseError as e:
            raise ValueError(str(e)) from e
        if seconds < MIN_SWEEP_INTERVAL_SECONDS:
            raise ValueError(f"Sweep interval too short: {v}. Minimum is 30s.")
        if seconds > MAX_SWEEP_INTERVAL_SECONDS:
            raise ValueError(f"Sweep interval too long: {v}. Maximum is 1d.")
        return v

    @field_validator("stale_after")
    @classmethod
    def validate_stale_after(cls, v: str) -> str:
        """Validate the stale threshold parses as a duration."""
        try:
            parse_duration(v)
        except DurationParseError as e:
            raise ValueError(str(e)) from e
        return v

    @model_validator(mode="after")
    def compute_seconds(self):
        """Compute the parsed durations."""
        self.interval_seconds = parse_duration(self.interval)
        self.stale_after_seconds = parse_duration(self.stale_after)
        return self


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True}


class AppConfig(BaseModel):
    """Root configuration object for the notification engine."""

    transport: TransportConfig = Field(default_factory=TransportConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)
    links: LinksConfig = Field(default_factory=LinksConfig)
    templates_path: Optional[Path] = Field(
        None, description="YAML file with templates (built-in templates when unset)"
    )
    storage: StorageConfig = Field(default_factory=StorageConfig)
    sweeper: SweeperConfig = Field(default_factory=SweeperConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

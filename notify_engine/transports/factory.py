"""Build the configured transport."""

from notify_engine.config.environment import EnvironmentConfig
from notify_engine.config.models import AppConfig, TransportType
from notify_engine.logging import get_logger

from .base import Transport
from .exceptions import TransportConfigurationError
from .http import HttpTransport
from .local import LogTransport, SimulatedTransport
from .smtp import SmtpTransport

logger = get_logger(__name__, component="transport")


def build_transport(app_config: AppConfig, env_config: EnvironmentConfig) -> Transport:
    """
    Create the transport selected by ``transport.type``.

    File settings win over environment settings where both exist
    (sender name, HTTP endpoint).

    Raises:
        TransportConfigurationError: For an unknown transport type or unusable settings
    """
    settings = app_config.transport
    transport_type = settings.type

    if transport_type == TransportType.SMTP.value:
        transport = SmtpTransport(
            host=env_config.smtp_host,
            port=env_config.smtp_port or 587,
            username=env_config.smtp_user,
            password=env_config.smtp_pass,
            use_tls=settings.use_tls,
            sender_name=settings.sender_name or env_config.smtp_sender_name,
            sender_email=settings.sender_email or env_config.smtp_sender_email,
            timeout=settings.timeout_seconds,
        )
    elif transport_type == TransportType.HTTP.value:
        transport = HttpTransport(
            endpoint=settings.endpoint or env_config.api_url,
            api_key=env_config.api_key,
            timeout=settings.timeout_seconds,
        )
    elif transport_type == TransportType.LOG.value:
        transport = LogTransport()
    elif transport_type == TransportType.SIMULATED.value:
        transport = SimulatedTransport(
            success_rate=settings.simulated_success_rate,
            latency_seconds=settings.simulated_latency_seconds,
        )
    else:
        raise TransportConfigurationError(f"Unknown transport type: {transport_type}")

    logger.info(
        f"Using {transport.name} transport",
        extra={"event": "transport.configured", "transport": transport.name},
    )
    return transport

"""Assemble a NotificationService from configuration."""

from dataclasses import dataclass
from typing import Optional

from notify_engine.config.environment import EnvironmentConfig
from notify_engine.config.models import AppConfig
from notify_engine.history.store import InMemoryHistoryStore
from notify_engine.logging import get_logger
from notify_engine.persistence import Database, SqlHistoryStore, SqlPreferenceStore
from notify_engine.preferences.store import InMemoryPreferenceStore
from notify_engine.templates.loader import load_default_templates, load_templates
from notify_engine.templates.store import TemplateStore
from notify_engine.transports.base import Transport
from notify_engine.transports.factory import build_transport

from .service import NotificationService

logger = get_logger(__name__, component="notification")


@dataclass
class ServiceRuntime:
    """A configured service plus the resources it holds open."""

    service: NotificationService
    database: Optional[Database] = None

    def close(self) -> None:
        self.service.close()
        if self.database is not None:
            self.database.close()


def build_service(
    app_config: AppConfig,
    env_config: EnvironmentConfig,
    transport: Optional[Transport] = None,
) -> ServiceRuntime:
    """
    Build a NotificationService wired according to configuration.

    Templates come from ``templates_path`` when set, otherwise the built-in
    set. A configured database URL selects the SQL stores; without one the
    stores live in memory.

    Args:
        app_config: Validated application configuration
        env_config: Validated environment configuration
        transport: Transport to use instead of the configured one

    Returns:
        ServiceRuntime holding the service and its database (if any)
    """
    if app_config.templates_path:
        templates = load_templates(app_config.templates_path)
    else:
        templates = load_default_templates()

    database = None
    if app_config.storage.database_url:
        database = Database(app_config.storage.database_url)
        history_store = SqlHistoryStore(database)
        preference_store = SqlPreferenceStore(database)
    else:
        history_store = InMemoryHistoryStore()
        preference_store = InMemoryPreferenceStore()

    service = NotificationService(
        transport=transport or build_transport(app_config, env_config),
        template_store=TemplateStore(),
        preference_store=preference_store,
        history_store=history_store,
        transport_timeout=app_config.transport.timeout_seconds,
        links=app_config.links,
        history_limit=app_config.history.default_limit,
    )
    service.register_templates(templates)

    logger.info(
        "Notification service ready",
        extra={
            "event": "service.ready",
            "template_count": len(templates),
            "storage": "sql" if database else "memory",
        },
    )
    return ServiceRuntime(service=service, database=database)

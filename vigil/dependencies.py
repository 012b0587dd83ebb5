"""FastAPI dependency injection providers."""

from .config import VigilConfig, get_config
from .utils.logging import get_logger

_dep_logger = get_logger("dependencies")

_config_instance: VigilConfig | None = None
_event_bus = None
_incident_store = None
_exporter = None


def get_app_config() -> VigilConfig:
    """Get the application config singleton."""
    global _config_instance
    if _config_instance is None:
        _config_instance = get_config()
    return _config_instance


def get_event_bus():
    """Get the EventBus singleton."""
    global _event_bus
    if _event_bus is None:
        from .utils.event_bus import EventBus
        config = get_app_config()
        _event_bus = EventBus(
            queue_size=config.event_bus_queue_size,
            history_size=config.event_history_size,
        )
    return _event_bus


def get_incident_store():
    """Get the IncidentStore singleton, wired to the event bus."""
    global _incident_store
    if _incident_store is None:
        from .engine.incident_store import IncidentStore
        config = get_app_config()
        _incident_store = IncidentStore(
            event_bus=get_event_bus(),
            enforce_transitions=config.enforce_transitions,
            automation_match_mode=config.automation_match_mode,
            deadline_limit=config.dashboard_deadline_limit,
        )
        _dep_logger.info(
            "incident_store_created",
            enforce_transitions=config.enforce_transitions,
            automation_match_mode=config.automation_match_mode,
        )
    return _incident_store


def get_exporter():
    """Get the IncidentExporter singleton."""
    global _exporter
    if _exporter is None:
        from .export.exporter import IncidentExporter
        config = get_app_config()
        _exporter = IncidentExporter(export_dir=config.export_dir)
    return _exporter


def reset_singletons() -> None:
    """Drop every singleton so the next getter builds a fresh one."""
    global _config_instance, _event_bus, _incident_store, _exporter
    _config_instance = None
    _event_bus = None
    _incident_store = None
    _exporter = None

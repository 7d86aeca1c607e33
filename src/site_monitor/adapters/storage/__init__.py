"""Storage adapters."""

from site_monitor.adapters.storage.yaml_store import YamlMonitoringStore

__all__ = ["YamlMonitoringStore"]

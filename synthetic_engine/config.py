import os
import re
from dataclasses import dataclass
from typing import Optional

from synthetic_engine.errors import ConfigError

PUSHGATEWAY_URL = os.getenv("PUSHGATEWAY_URL", "http://localhost:9091")
PROM_JOB = os.getenv("PROM_JOB", "synthetic_engine")

DEFAULT_TIMEOUT_SECONDS = 30

DEFAULT_LAUNCH_OPTIONS = {
    "headless": True,
    "args": ["--enable-precise-memory-info", "--disable-dev-shm-usage"],
}


@dataclass(frozen=True)
class SessionConfig:
    """Read-only settings shared by every stage of one page session."""

    aggregate_by_name: bool = False
    extended_metrics: bool = False
    show_all_page_metrics: bool = False
    target_origin: Optional[str] = None
    scenario_name: Optional[str] = None


LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _seconds_to_ms(value):
    # leading integer only: "60.5" -> 60, "45s" -> 45
    match = LEADING_INT.match(str(value)) if value is not None else None
    seconds = int(match.group(1)) if match else 0
    return (seconds or DEFAULT_TIMEOUT_SECONDS) * 1000


class EngineConfig:
    def __init__(self, script):
        if not isinstance(script, dict) or not isinstance(script.get("config"), dict):
            raise ConfigError("Script has no 'config' section.")

        config = script["config"]
        engine = (config.get("engines") or {}).get("playwright") or {}

        self.target = config.get("target") or None
        self.processor = config.get("processor") or {}

        self.launch_options = {**DEFAULT_LAUNCH_OPTIONS, **(engine.get("launchOptions") or {})}
        self.context_options = engine.get("contextOptions") or {}

        self.default_navigation_timeout = _seconds_to_ms(engine.get("defaultNavigationTimeout"))
        self.default_timeout = _seconds_to_ms(engine.get("defaultPageTimeout"))

        self.aggregate_by_name = bool(engine.get("aggregateByName", False))
        # presence flags: any value, even false, switches them on
        self.extended_metrics = "extendedMetrics" in engine
        self.show_all_page_metrics = "showAllPageMetrics" in engine

    def session_config(self, scenario_name=None):
        return SessionConfig(
            aggregate_by_name=self.aggregate_by_name,
            extended_metrics=self.extended_metrics,
            show_all_page_metrics=self.show_all_page_metrics,
            target_origin=self.target,
            scenario_name=scenario_name,
        )

import json
import logging
from typing import NamedTuple

from synthetic_engine.errors import ReportError

logger = logging.getLogger(__name__)


class CustomMetricReport(NamedTuple):
    name: str
    value: float
    url: str


def parse_report(text):
    try:
        payload = json.loads(text)
    except (TypeError, ValueError) as exc:
        raise ReportError(f"Console trace is not JSON: {exc}") from exc

    if not isinstance(payload, dict):
        raise ReportError("Console trace is not an object")

    name = payload.get("name")
    value = payload.get("value")
    url = payload.get("url")
    if not isinstance(name, str) or not name:
        raise ReportError("Metric report has no name")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ReportError(f"Metric report {name!r} has no numeric value")
    if not isinstance(url, str):
        raise ReportError(f"Metric report {name!r} has no url")

    return CustomMetricReport(name, value, url)


class EmissionGate:
    def __init__(self, session_config):
        self.session_config = session_config

    def allows(self, report):
        # metrics from embedded frames on other origins are dropped by default
        if self.session_config.show_all_page_metrics:
            return True
        target = self.session_config.target_origin
        return target is not None and report.url.startswith(target)


class ConsoleMetricParser:
    def __init__(self, session_config, naming, emitter):
        self.naming = naming
        self.emitter = emitter
        self.gate = EmissionGate(session_config)

    async def on_console(self, message):
        if message.type != "trace":
            return

        logger.debug("console trace: %s", message.text)
        try:
            report = parse_report(message.text)
            if self.gate.allows(report):
                self.emitter.histogram(
                    self.naming.named_page_metric(report.name, report.url), report.value
                )
        except Exception as exc:
            logger.error("Console event handler code: %s", exc)

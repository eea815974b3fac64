import json
import logging

from synthetic_engine.browser_eval import BROWSER_TIMING
from synthetic_engine.errors import ExtractionError

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("navigationStart", "connectStart", "domInteractive")


class PerformanceTiming:
    def __init__(self, fields):
        self.fields = fields
        self.navigation_start = fields["navigationStart"]
        self.connect_start = fields["connectStart"]
        self.dom_interactive = fields["domInteractive"]

    @classmethod
    def parse(cls, raw):
        try:
            fields = json.loads(raw)
        except (TypeError, ValueError) as exc:
            raise ExtractionError(f"Timing payload is not JSON: {exc}") from exc

        if not isinstance(fields, dict):
            raise ExtractionError("Timing payload is not an object")

        for key in REQUIRED_FIELDS:
            value = fields.get(key)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ExtractionError(f"Timing field {key!r} missing or not numeric")

        timing = cls(fields)
        if timing.start_to_interactive < 0:
            raise ExtractionError(
                f"domInteractive ({timing.dom_interactive}) precedes "
                f"navigationStart ({timing.navigation_start})"
            )
        return timing

    @property
    def start_to_interactive(self):
        return self.dom_interactive - self.navigation_start


class DedupLedger:
    """Timing records already counted in this page session, by identity key.

    Keys are ``resolved name + connectStart``. Two distinct navigations that
    share both values collide and the second is dropped.
    """

    def __init__(self):
        self._entries = {}

    @staticmethod
    def key_for(name, timing):
        return f"{name}{timing.connect_start}"

    def record(self, key, timing):
        # no await between check and insert: atomic on the event loop
        if key in self._entries:
            return False
        self._entries[key] = timing
        return True

    def __contains__(self, key):
        return key in self._entries

    def __len__(self):
        return len(self._entries)


class TimingExtractor:
    def __init__(self, session_config, naming, ledger, emitter):
        self.session_config = session_config
        self.naming = naming
        self.ledger = ledger
        self.emitter = emitter

    async def on_domcontentloaded(self, page):
        if not self.session_config.extended_metrics:
            return

        try:
            timing = PerformanceTiming.parse(await page.evaluate(BROWSER_TIMING))
            url = page.url
            name = self.naming.resolve_name(url)
            if not self.ledger.record(DedupLedger.key_for(name, timing), timing):
                return

            logger.debug("domcontentloaded: %s", name)
            start_to_interactive = timing.start_to_interactive

            self.emitter.counter(self.naming.page_metric("domcontentloaded"), 1)
            self.emitter.counter(self.naming.named_page_metric("domcontentloaded", url), 1)
            self.emitter.histogram(self.naming.page_metric("dominteractive"), start_to_interactive)
            self.emitter.histogram(
                self.naming.named_page_metric("dominteractive", url), start_to_interactive
            )
        except Exception as exc:
            logger.error("domcontentloaded event handler code: %s", exc)

import json
import logging

from synthetic_engine.browser_eval import GET_HEAP_SIZE
from synthetic_engine.console_metrics import ConsoleMetricParser
from synthetic_engine.errors import ExtractionError
from synthetic_engine.naming import NamingPolicy
from synthetic_engine.timing import DedupLedger, TimingExtractor

logger = logging.getLogger(__name__)

BYTES_PER_MB = 1_000_000


class HeapSampler:
    def __init__(self, session_config, naming, emitter):
        self.session_config = session_config
        self.naming = naming
        self.emitter = emitter

    async def on_load(self, page):
        if not self.session_config.extended_metrics:
            return

        try:
            logger.debug("load: %s", self.naming.resolve_name(page.url))
            sample = json.loads(await page.evaluate(GET_HEAP_SIZE))
            used = sample["usedJSHeapSize"]
            if isinstance(used, bool) or not isinstance(used, (int, float)):
                raise ExtractionError(f"usedJSHeapSize is not numeric: {used!r}")
            self.emitter.histogram("browser.memory_used_mb", used / BYTES_PER_MB)
        except Exception as exc:
            logger.error("Load event handler code: %s", exc)


class PageInstrumentation:
    """All event observers of one page session, sharing one dedup ledger."""

    def __init__(self, session_config, emitter):
        self.session_config = session_config
        self.emitter = emitter
        self.naming = NamingPolicy(session_config)
        self.ledger = DedupLedger()

        self.timing = TimingExtractor(session_config, self.naming, self.ledger, emitter)
        self.console = ConsoleMetricParser(session_config, self.naming, emitter)
        self.heap = HeapSampler(session_config, self.naming, emitter)
        self.page = None

    def on_page_error(self, error):
        url = self.page.url if self.page is not None else ""
        logger.debug("pageerror: %s", self.naming.resolve_name(url))
        logger.debug("pageerror: %s: %s", getattr(error, "name", type(error).__name__),
                     getattr(error, "message", str(error)))

    def on_request_finished(self, request):
        self.emitter.counter("browser.http_requests", 1)

    def attach(self, page):
        self.page = page
        page.on("domcontentloaded", self.timing.on_domcontentloaded)
        page.on("console", self.console.on_console)
        page.on("load", self.heap.on_load)
        page.on("pageerror", self.on_page_error)
        page.on("requestfinished", self.on_request_finished)
        return self

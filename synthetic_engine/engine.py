import logging
from contextlib import AsyncExitStack
from enum import Enum

from playwright.async_api import async_playwright

from synthetic_engine.browser_eval import FLUSH_VITALS, INIT_SCRIPTS
from synthetic_engine.config import EngineConfig
from synthetic_engine.emitter import MetricEmitter
from synthetic_engine.observers import PageInstrumentation
from synthetic_engine.processor import resolve_flow

logger = logging.getLogger(__name__)


class SessionState(Enum):
    CREATED = "created"
    INSTRUMENTED = "instrumented"
    RUNNING = "running"
    FAILED = "failed"
    CLOSING = "closing"
    CLOSED = "closed"


ALLOWED_TRANSITIONS = {
    SessionState.CREATED: {SessionState.INSTRUMENTED, SessionState.CLOSING},
    SessionState.INSTRUMENTED: {SessionState.RUNNING, SessionState.CLOSING},
    SessionState.RUNNING: {SessionState.FAILED, SessionState.CLOSING},
    SessionState.FAILED: {SessionState.CLOSING},
    SessionState.CLOSING: {SessionState.CLOSED},
    SessionState.CLOSED: set(),
}


# ================= SESSION =================

class ScenarioSession:
    """One virtual user: browser, context and an instrumented page.

    Context and browser are released on every exit path, context first.
    """

    def __init__(self, engine_config, session_config, flow, events, browser_type=None):
        self.engine_config = engine_config
        self.session_config = session_config
        self.flow = flow
        self.events = events
        self.browser_type = browser_type
        self.state = SessionState.CREATED
        self.instrumentation = None

    def _transition(self, state):
        if state not in ALLOWED_TRANSITIONS[self.state]:
            raise RuntimeError(f"Invalid session transition {self.state.value} -> {state.value}")
        logger.debug("session %s -> %s", self.state.value, state.value)
        self.state = state

    def _begin_closing(self):
        if self.state is not SessionState.CLOSING:
            self._transition(SessionState.CLOSING)

    async def _launch(self, stack):
        browser_type = self.browser_type
        if browser_type is None:
            playwright = await stack.enter_async_context(async_playwright())
            browser_type = playwright.chromium

        browser = await browser_type.launch(**self.engine_config.launch_options)
        stack.push_async_callback(browser.close)
        stack.callback(self._begin_closing)
        logger.debug("browser created")

        context = await browser.new_context(**self.engine_config.context_options)
        stack.push_async_callback(context.close)
        stack.callback(self._begin_closing)

        context.set_default_navigation_timeout(self.engine_config.default_navigation_timeout)
        context.set_default_timeout(self.engine_config.default_timeout)
        logger.debug("context created")
        return context

    async def _instrument(self, context):
        for script in INIT_SCRIPTS:
            await context.add_init_script(script=script)

        page = await context.new_page()
        logger.debug("page created")

        self.instrumentation = PageInstrumentation(
            self.session_config, MetricEmitter(self.events)
        ).attach(page)
        self._transition(SessionState.INSTRUMENTED)
        return page

    async def _flush_vitals(self, page):
        try:
            await page.evaluate(FLUSH_VITALS)
        except Exception as exc:
            logger.error("Vitals flush failed: %s", exc)

    async def run(self, initial_context, callback=None):
        self.events.emit("started")
        try:
            async with AsyncExitStack() as stack:
                context = await self._launch(stack)
                try:
                    page = await self._instrument(context)

                    self._transition(SessionState.RUNNING)
                    await self.flow(page, initial_context, self.events)

                    await self._flush_vitals(page)
                    await page.close()
                except Exception as error:
                    if self.state is SessionState.RUNNING:
                        self._transition(SessionState.FAILED)
                    logger.exception("Scenario %s failed", self.session_config.scenario_name or "")
                    if callback is None:
                        raise
                    callback(error, initial_context)
                    return None

                if callback is not None:
                    callback(None, initial_context)
                return initial_context
        finally:
            # launch failed before anything was acquired
            self._begin_closing()
            self._transition(SessionState.CLOSED)


# ================= ENGINE =================

class PlaywrightEngine:
    def __init__(self, script, browser_type=None):
        logger.debug("constructor")
        self.config = EngineConfig(script)
        self.browser_type = browser_type

    def create_scenario(self, spec, events):
        logger.debug("createScenario: %s", spec)

        flow = resolve_flow(self.config.processor, spec.get("flowFunction"))
        session_config = self.config.session_config(spec.get("name"))

        async def scenario(initial_context, callback=None):
            session = ScenarioSession(
                self.config, session_config, flow, events, self.browser_type
            )
            return await session.run(initial_context, callback)

        return scenario

from __future__ import annotations

import json

import pytest

from synthetic_engine.browser_eval import BROWSER_TIMING, GET_HEAP_SIZE
from synthetic_engine.config import SessionConfig
from synthetic_engine.emitter import MetricEmitter

TARGET = "https://shop.example.com"


class FakeEvents:
    def __init__(self):
        self.emitted = []

    def emit(self, kind, *args):
        self.emitted.append((kind, *args))

    def of_kind(self, kind):
        return [e for e in self.emitted if e[0] == kind]


class FakePage:
    def __init__(self, url=TARGET + "/", timing=None, heap=None, evaluate_error=None):
        self.url = url
        self.results = {}
        if timing is not None:
            self.results[BROWSER_TIMING] = json.dumps(timing) if isinstance(timing, dict) else timing
        if heap is not None:
            self.results[GET_HEAP_SIZE] = json.dumps(heap) if isinstance(heap, dict) else heap
        self.evaluate_error = evaluate_error
        self.handlers = {}
        self.evaluated = []
        self.closed = False

    async def evaluate(self, script):
        self.evaluated.append(script)
        if self.evaluate_error is not None:
            raise self.evaluate_error
        return self.results.get(script)

    def on(self, event, handler):
        self.handlers.setdefault(event, []).append(handler)

    async def close(self):
        self.closed = True


class FakeConsoleMessage:
    def __init__(self, text, type="trace"):
        self.text = text
        self.type = type


class FakeContext:
    def __init__(self, page, log):
        self.page = page
        self.log = log
        self.init_scripts = []
        self.navigation_timeout = None
        self.timeout = None

    def set_default_navigation_timeout(self, ms):
        self.navigation_timeout = ms

    def set_default_timeout(self, ms):
        self.timeout = ms

    async def add_init_script(self, script=None):
        self.init_scripts.append(script)

    async def new_page(self):
        return self.page

    async def close(self):
        self.log.append("context.close")


class FakeBrowser:
    def __init__(self, context_factory, log, context_error=None):
        self.context_factory = context_factory
        self.log = log
        self.context_error = context_error
        self.context = None
        self.context_options = None

    async def new_context(self, **options):
        self.context_options = options
        if self.context_error is not None:
            raise self.context_error
        self.context = self.context_factory()
        return self.context

    async def close(self):
        self.log.append("browser.close")


class FakeBrowserType:
    def __init__(self, page=None, context_error=None):
        self.log = []
        self.page = page or FakePage()
        self.context_error = context_error
        self.launch_options = None
        self.browser = None

    async def launch(self, **options):
        self.launch_options = options
        self.browser = FakeBrowser(
            lambda: FakeContext(self.page, self.log), self.log, self.context_error
        )
        return self.browser


@pytest.fixture
def events():
    return FakeEvents()


@pytest.fixture
def emitter(events):
    return MetricEmitter(events)


@pytest.fixture
def session_config():
    return SessionConfig(extended_metrics=True, target_origin=TARGET, scenario_name="checkout")

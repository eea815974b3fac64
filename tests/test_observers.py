from __future__ import annotations

import logging

import pytest

from conftest import FakePage
from synthetic_engine.config import SessionConfig
from synthetic_engine.naming import NamingPolicy
from synthetic_engine.observers import HeapSampler, PageInstrumentation


class FakeError:
    name = "TypeError"
    message = "undefined is not a function"


@pytest.mark.asyncio
async def test_heap_sample_is_reported_in_megabytes(session_config, emitter, events):
    sampler = HeapSampler(session_config, NamingPolicy(session_config), emitter)

    await sampler.on_load(FakePage(heap={"usedJSHeapSize": 52_000_000}))

    assert events.emitted == [("histogram", "browser.memory_used_mb", 52)]


@pytest.mark.asyncio
async def test_heap_sampler_needs_extended_metrics(emitter, events):
    config = SessionConfig(extended_metrics=False)
    sampler = HeapSampler(config, NamingPolicy(config), emitter)

    await sampler.on_load(FakePage(heap={"usedJSHeapSize": 52_000_000}))

    assert events.emitted == []


@pytest.mark.asyncio
async def test_heap_sampler_swallows_bad_samples(session_config, emitter, events, caplog):
    sampler = HeapSampler(session_config, NamingPolicy(session_config), emitter)

    with caplog.at_level(logging.ERROR):
        await sampler.on_load(FakePage(heap={"usedJSHeapSize": None}))
        await sampler.on_load(FakePage(heap="garbage"))

    assert events.emitted == []
    assert "Load event handler" in caplog.text


def test_attach_registers_every_observer(session_config, emitter):
    page = FakePage()
    PageInstrumentation(session_config, emitter).attach(page)

    assert set(page.handlers) == {"domcontentloaded", "console", "load", "pageerror", "requestfinished"}


def test_finished_requests_are_counted(session_config, emitter, events):
    page = FakePage()
    PageInstrumentation(session_config, emitter).attach(page)

    for handler in page.handlers["requestfinished"]:
        handler(object())
        handler(object())

    assert events.emitted == [("counter", "browser.http_requests", 1)] * 2


def test_page_errors_are_logged_only(session_config, emitter, events, caplog):
    page = FakePage()
    PageInstrumentation(session_config, emitter).attach(page)

    with caplog.at_level(logging.DEBUG, logger="synthetic_engine.observers"):
        page.handlers["pageerror"][0](FakeError())

    assert events.emitted == []
    assert "undefined is not a function" in caplog.text


@pytest.mark.asyncio
async def test_observers_share_one_ledger(session_config, emitter, events):
    timing = {"navigationStart": 0, "connectStart": 3, "domInteractive": 40}
    page = FakePage(timing=timing)
    instrumentation = PageInstrumentation(session_config, emitter).attach(page)

    await page.handlers["domcontentloaded"][0](page)
    await page.handlers["domcontentloaded"][0](page)

    assert instrumentation.timing.ledger is instrumentation.ledger
    assert len(instrumentation.ledger) == 1
    assert len(events.of_kind("histogram")) == 2

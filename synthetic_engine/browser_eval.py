# ================= PAGE EVALUATIONS =================

BROWSER_TIMING = "() => JSON.stringify(performance.timing)"

GET_HEAP_SIZE = """
() => JSON.stringify({
    usedJSHeapSize: performance.memory ? performance.memory.usedJSHeapSize : null
})
"""

# LCP and CLS are final only once the user is done with the page
FLUSH_VITALS = "() => window.__syntheticVitals && window.__syntheticVitals.flush()"

# ================= INIT SCRIPTS =================

# Registers observers for paint / layout / input metrics. Values are handed to
# every callback in window.__syntheticVitals.listeners.
WEB_VITALS_SCRIPT = """
(() => {
    const vitals = { listeners: [] };
    window.__syntheticVitals = vitals;

    const report = (name, value) => {
        for (const listener of vitals.listeners) {
            try { listener(name, value); } catch (e) {}
        }
    };

    const observe = (type, handler) => {
        try {
            new PerformanceObserver(list => handler(list.getEntries()))
                .observe({ type, buffered: true });
        } catch (e) {}
    };

    observe('paint', entries => {
        for (const e of entries) {
            if (e.name === 'first-contentful-paint') report('FCP', e.startTime);
        }
    });

    let lcp = -1;
    observe('largest-contentful-paint', entries => {
        const last = entries[entries.length - 1];
        if (last) lcp = last.startTime;
    });

    let cls = 0;
    observe('layout-shift', entries => {
        for (const e of entries) {
            if (!e.hadRecentInput) cls += e.value;
        }
    });

    observe('first-input', entries => {
        const first = entries[0];
        if (first) report('FID', first.processingStart - first.startTime);
    });

    observe('navigation', entries => {
        const nav = entries[0];
        if (nav && nav.responseStart > 0) report('TTFB', nav.responseStart);
    });

    let flushed = false;
    vitals.flush = () => {
        if (flushed) return;
        flushed = true;
        if (lcp >= 0) report('LCP', lcp);
        report('CLS', cls);
    };

    addEventListener('visibilitychange', () => {
        if (document.visibilityState === 'hidden') vitals.flush();
    });
    addEventListener('pagehide', () => vitals.flush());
})();
"""

# Reports every vital as a console trace line: {name, value, url}
STATS_TO_CONSOLE = """
(() => {
    const attach = () => {
        const vitals = window.__syntheticVitals;
        if (!vitals) return;
        vitals.listeners.push((name, value) => {
            console.trace(JSON.stringify({ name, value, url: location.href }));
        });
    };
    attach();
})();
"""

INIT_SCRIPTS = (WEB_VITALS_SCRIPT, STATS_TO_CONSOLE)

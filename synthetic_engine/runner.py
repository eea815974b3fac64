import argparse
import asyncio
import json
import logging
import os
import time
import uuid
from datetime import datetime, timezone

import pandas as pd

from synthetic_engine.emitter import PrometheusEvents
from synthetic_engine.engine import PlaywrightEngine
from synthetic_engine.errors import ConfigError

logger = logging.getLogger(__name__)


# ================= CLI =================

def parse_args(argv=None):
    p = argparse.ArgumentParser("Browser load-test engine")
    p.add_argument("--script", required=True, help="JSON load-test script")
    p.add_argument("--scenario", help="Only run the scenario with this name")
    p.add_argument("--context-data", help="CSV input, one row of vars per session")
    p.add_argument("--env", default="stage")
    p.add_argument("--duration", type=float, default=1, help="Minutes to keep starting sessions")
    p.add_argument("--delay", type=float, default=5, help="Seconds between sessions")
    p.add_argument("--push", action="store_true", help="Push metrics to the Pushgateway")
    p.add_argument("--log-level", default="INFO")
    return p.parse_args(argv)


# ================= UTILS =================

def load_script(path):
    with open(path) as f:
        return json.load(f)


def load_context_rows(path):
    if not path:
        return [{}]
    df = pd.read_csv(path, dtype=str).fillna("")
    # header-only file: run once per scenario with empty vars
    return df.to_dict(orient="records") or [{}]


def select_scenarios(script, name=None):
    scenarios = [
        s for s in script.get("scenarios") or []
        if s.get("engine", "playwright") == "playwright"
    ]
    if name:
        scenarios = [s for s in scenarios if s.get("name") == name]
    if not scenarios:
        raise ConfigError("No playwright scenarios to run.")
    return scenarios


def summarize(observations):
    """Per-metric histogram statistics and counter totals."""
    rows = []
    for kind, *rest in observations:
        if kind not in ("counter", "histogram"):
            continue
        name, value = rest
        rows.append({"kind": kind, "metric": name, "value": value})

    columns = ["kind", "metric", "samples", "total", "avg", "p90", "max", "min"]
    if not rows:
        return pd.DataFrame(columns=columns)

    df = pd.DataFrame(rows)
    summary = (
        df.groupby(["kind", "metric"])["value"]
        .agg(
            samples="count",
            total="sum",
            avg="mean",
            p90=lambda v: v.quantile(0.9),
            max="max",
            min="min",
        )
        .reset_index()
    )
    return summary[columns]


# ================= RUN =================

class RunStats:
    def __init__(self):
        self.completed = 0
        self.failed = 0

    def callback(self, error, context):
        if error is None:
            self.completed += 1
        else:
            self.failed += 1


async def run_scenarios(engine, scenarios, rows, events, duration_minutes, delay,
                        stats=None, clock=time.time):
    if not rows or not scenarios:
        raise ConfigError("Nothing to run: no scenarios or no context rows.")
    stats = stats or RunStats()
    runners = [(spec, engine.create_scenario(spec, events)) for spec in scenarios]
    end_time = clock() + duration_minutes * 60

    while clock() < end_time:
        for spec, scenario in runners:
            for row in rows:
                logger.info("Starting scenario %s", spec.get("name") or spec.get("flowFunction"))
                await scenario({"vars": dict(row)}, stats.callback)
                if clock() >= end_time:
                    return stats
                await asyncio.sleep(delay)
    return stats


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="[%(levelname)s] %(name)s: %(message)s",
    )

    run_id = f"{datetime.now(timezone.utc).strftime('%Y%m%dT%H%M%SZ')}_{uuid.uuid4().hex[:6]}"
    base_dir = os.path.join("runs", args.env, run_id)
    os.makedirs(base_dir, exist_ok=True)

    script = load_script(args.script)
    engine = PlaywrightEngine(script)
    scenarios = select_scenarios(script, args.scenario)
    rows = load_context_rows(args.context_data)

    events = PrometheusEvents(env=args.env, run_id=run_id)
    if args.push:
        events.cleanup()

    stats = asyncio.run(
        run_scenarios(engine, scenarios, rows, events, args.duration, args.delay)
    )

    if args.push:
        events.push()

    summary_path = os.path.join(base_dir, "summary_report.csv")
    summarize(events.observations).to_csv(summary_path, index=False)
    logger.info(
        "Run %s finished: %d completed, %d failed. Summary: %s",
        run_id, stats.completed, stats.failed, summary_path,
    )
    return 0 if stats.failed == 0 else 1

from synthetic_engine.config import EngineConfig, SessionConfig
from synthetic_engine.emitter import MetricEmitter, PrometheusEvents
from synthetic_engine.engine import PlaywrightEngine, ScenarioSession, SessionState

__all__ = [
    "EngineConfig",
    "MetricEmitter",
    "PlaywrightEngine",
    "PrometheusEvents",
    "ScenarioSession",
    "SessionConfig",
    "SessionState",
]

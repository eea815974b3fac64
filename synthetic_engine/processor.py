import importlib
from collections.abc import Mapping

from synthetic_engine.errors import ConfigError


def load_processor(processor):
    """Flow functions by name, from a mapping or an importable module.

    A module exposes its flows through a ``FLOWS`` dict, or as plain
    module-level functions.
    """
    if isinstance(processor, Mapping):
        return dict(processor)

    if isinstance(processor, str):
        try:
            module = importlib.import_module(processor)
        except ImportError as exc:
            raise ConfigError(f"Cannot import processor {processor!r}: {exc}") from exc
        flows = getattr(module, "FLOWS", None)
        if flows is not None:
            return dict(flows)
        return {
            name: value for name, value in vars(module).items()
            if callable(value) and not name.startswith("_")
        }

    if processor is None:
        return {}
    raise ConfigError(f"Unsupported processor: {processor!r}")


def resolve_flow(processor, flow_name):
    flows = load_processor(processor)
    try:
        return flows[flow_name]
    except KeyError:
        raise ConfigError(f"Unknown flowFunction {flow_name!r}") from None

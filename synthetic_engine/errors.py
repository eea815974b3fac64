class EngineError(Exception):
    pass


class ConfigError(EngineError):
    pass


class ExtractionError(EngineError):
    """Data evaluated in the page could not be turned into a measurement."""


class ReportError(EngineError):
    """A console trace line is not a custom metric report."""

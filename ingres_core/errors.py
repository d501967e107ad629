# ingres_core/errors.py


class IngresError(Exception):
    """Base class for errors raised by the engine."""


class CatalogNotInitialized(IngresError, RuntimeError):
    """The location catalog was never loaded (or every load attempt failed)."""

    def __init__(self, message: str = "Location catalog not initialized. Load a snapshot first."):
        super().__init__(message)


class CatalogIntegrityError(IngresError, ValueError):
    """The loaded entities do not form a valid COUNTRY > STATE > DISTRICT > TALUK forest."""


class UnknownMetricError(IngresError, ValueError):
    def __init__(self, metric: str, valid):
        self.metric = metric
        super().__init__(f"Unknown metric '{metric}'. Valid metrics: {', '.join(valid)}")


class ReloadFailed(IngresError, RuntimeError):
    """A reload exhausted its retries; the previously loaded snapshot is still served."""

class TornadoTrackerError(Exception):
    """Base class for errors raised by tornado_tracker."""


class DataSourceError(TornadoTrackerError):
    """The record source could not be found or decoded."""

class ScanError(Exception):
    """Base class for failures that reach the caller of a scan."""
    status = 500


class InputError(ScanError):
    """Missing or malformed request input. Raised before any upstream call."""
    status = 400


class UpstreamUnavailable(ScanError):
    """Every ranked pool endpoint failed or returned no pools."""
    status = 502


class UpstreamError(Exception):
    """A single upstream HTTP call failed (status, transport, timeout or bad JSON)."""

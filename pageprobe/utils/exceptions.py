"""
pageprobe/utils/exceptions.py

Custom exceptions for the project.
"""


class PageProbeError(Exception):
    """
    Base exception for all pageprobe errors.
    """
    pass


class TargetNotFoundError(PageProbeError):
    """
    Exception raised when no matching page target is exposed by the browser.
    """
    pass


class CDPError(PageProbeError):
    """
    Base exception for Chrome DevTools Protocol failures.
    """
    pass


class CDPConnectionError(CDPError):
    """
    Exception raised when the CDP websocket is closed or cannot be reached.
    """
    pass


class CDPCommandError(CDPError):
    """
    Exception raised when a CDP command returns an error reply.
    """

    def __init__(self, method: str, error: dict | str) -> None:
        self.method = method
        self.error = error
        message = error.get("message", str(error)) if isinstance(error, dict) else error
        super().__init__(f"CDP command {method} failed: {message}")


class CDPEvaluationError(CDPError):
    """
    Exception raised when an expression throws inside the page before producing a value.
    """
    pass

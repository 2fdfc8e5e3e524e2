from typing import Optional


class ProviderError(Exception):
    """Non-success response or missing field from the crawl/backlink provider"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self):
        if self.status_code is not None:
            return f"{self.message} (HTTP {self.status_code})"
        return self.message


class TaskTimeoutError(TimeoutError):
    """Provider task did not report completion before the polling deadline"""


class SummaryError(Exception):
    """LLM invocation or response parsing failed"""

"""
Errors
======

Exceptions raised between the read path layers. Each one carries the HTTP
status and the fixed public message the handlers in ``app.main`` write back
as ``text/plain``; clients match on those messages so they must not change.
"""

from typing import Optional


class SearchAPIError(Exception):
    status_code = 500

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class ValidationError(SearchAPIError):
    """A request parameter failed validation."""

    status_code = 400

    def __init__(self, param: str, reason: str, detail: str = ""):
        super().__init__(f"Invalid {param} parameter")
        self.param = param
        self.reason = reason
        self.detail = detail


class BadRequest(SearchAPIError):
    """Parameters are individually valid but inconsistent with each other."""

    status_code = 400


class CompileError(SearchAPIError):
    def __init__(self, cause: Optional[BaseException] = None, kind: str = ""):
        super().__init__(
            f"Failed to create {kind} query" if kind else "Failed to create query",
            cause,
        )
        self.kind = kind


# upstream names used in messages and logs
ES = "ES"
CMS = "CMS"
DATASETS = "Datasets"


class UpstreamError(SearchAPIError):
    def __init__(
        self,
        upstream: str = ES,
        cause: Optional[BaseException] = None,
        kind: str = "search",
    ):
        super().__init__(f"Failed to run {kind} query", cause)
        self.upstream = upstream
        self.kind = kind


class DecodeError(SearchAPIError):
    def __init__(self, cause: Optional[BaseException] = None, kind: str = "search"):
        super().__init__(f"Failed to process {kind} query", cause)
        self.kind = kind


class EmptyResponses(DecodeError):
    """The multi-search envelope decoded but held no responses."""


class TransformError(SearchAPIError):
    def __init__(self, cause: Optional[BaseException] = None, kind: str = "search"):
        super().__init__(f"Failed to transform {kind} result", cause)
        self.kind = kind


class Unauthorized(SearchAPIError):
    status_code = 401

    def __init__(self):
        super().__init__("Unauthorized")

"""
Error Taxonomy and Handlers

This module defines the retrieval engine's exception types and the FastAPI
exception handlers that translate them into HTTP responses.

Design Goals
------------
- Degradation (missing credential, remote failure) never surfaces as an error
- A failed corpus build is reported as retryable, not as an internal fault
- Never leak internal exception details to clients
- Log full stack traces internally for debugging
"""

from __future__ import annotations

import logging
from typing import Dict, Any

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger("retrieval.errors")


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class RetrievalError(RuntimeError):
    """Base error for the semantic retrieval engine."""


class EmbeddingError(RetrievalError):
    """Raised when the embedding provider returns an unusable response."""


class CorpusBuildError(RetrievalError):
    """Raised when source documents cannot be fetched for a corpus build."""


# ---------------------------------------------------------------------
# Public Exception Handlers
# ---------------------------------------------------------------------

CORPUS_RETRY_AFTER_SECONDS = 30


async def corpus_build_exception_handler(
    request: Request,
    exc: CorpusBuildError,
) -> JSONResponse:
    """
    Map a failed corpus build to a retryable 503.

    The engine stays uninitialized after such a failure, so the next request
    triggers a fresh build attempt.
    """
    logger.error(
        "Corpus unavailable during request %s %s: %s",
        request.method,
        request.url.path,
        exc,
    )

    payload: Dict[str, Any] = {
        "error": "corpus_unavailable",
        "detail": "Search corpus is not available yet, retry later",
    }

    return JSONResponse(
        status_code=503,
        content=payload,
        headers={"Retry-After": str(CORPUS_RETRY_AFTER_SECONDS)},
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """
    Catch-all handler for uncaught exceptions.

    Behavior
    --------
    - Logs the full exception stack trace for internal diagnostics.
    - Returns a generic 500 error to the client with no internal details.

    Parameters
    ----------
    request : Request
        The incoming HTTP request that triggered the exception.

    exc : Exception
        The uncaught exception instance.

    Returns
    -------
    JSONResponse
        A JSON 500 response with a minimal error payload.
    """
    logger.exception(
        "Unhandled exception during request: %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )

    payload: Dict[str, Any] = {
        "error": "internal_server_error",
        "detail": "Internal server error",
    }

    return JSONResponse(
        status_code=500,
        content=payload,
    )

"""Request middlewares: access logging, trailing-slash paths and error recovery."""

from __future__ import annotations

import logging
from dataclasses import replace
from http import HTTPStatus

from cpaw.mux import Handler, Request, Response

_log = logging.getLogger(__name__)


def logger(next_handler: Handler) -> Handler:
    """Log the method, URL and status of every request."""

    def handler(request: Request) -> Response:
        response = next_handler(request)
        _log.info("%s %s %d", request.method, request.url, response.status)
        return response

    return handler


def add_trailing_slash(next_handler: Handler) -> Handler:
    """Make sure the request path ends with a slash before routing."""

    def handler(request: Request) -> Response:
        if not request.path.endswith("/"):
            request = replace(request, path=request.path + "/")
        return next_handler(request)

    return handler


def recover(next_handler: Handler) -> Handler:
    """Turn an exception raised by a handler into a 500 response."""

    def handler(request: Request) -> Response:
        try:
            return next_handler(request)
        except Exception as error:  # noqa: BLE001 - any handler failure becomes a 500
            _log.error("Recovered from error: %s", error)
            return Response(status=int(HTTPStatus.INTERNAL_SERVER_ERROR))

    return handler
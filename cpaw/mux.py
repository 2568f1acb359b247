"""Request routing with method and wildcard patterns, route groups and middleware."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from datetime import datetime
from email.utils import formatdate
from enum import Enum
from http import HTTPStatus
from typing import Any, Callable, Iterable, Mapping, Optional, Union
from urllib.parse import parse_qs

Handler = Callable[["Request"], "Response"]
Middleware = Callable[[Handler], Handler]

_FORM_METHODS = frozenset({"POST", "PUT", "PATCH"})
_FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
_JSON_ESCAPES = (
    ("<", "\\u003c"),
    (">", "\\u003e"),
    ("&", "\\u0026"),
    ("\u2028", "\\u2028"),
    ("\u2029", "\\u2029"),
)


@dataclass(frozen=True)
class Request:
    """An incoming HTTP request. Header names are stored in lower case."""

    method: str = "GET"
    path: str = "/"
    query: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""
    context: Mapping[str, Any] = field(default_factory=dict)
    path_values: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", self.method.upper())
        object.__setattr__(
            self, "headers", {name.lower(): value for name, value in self.headers.items()}
        )

    @property
    def url(self) -> str:
        """The path followed by the query string, if any."""
        return f"{self.path}?{self.query}" if self.query else self.path

    def path_value(self, name: str) -> str:
        """Return the value matched by the wildcard ``name``, or an empty string."""
        return self.path_values.get(name, "")

    def cookie(self, name: str) -> Optional[str]:
        """Return the value of the cookie ``name``, or None if it was not sent."""
        for part in self.headers.get("cookie", "").split(";"):
            key, sep, value = part.strip().partition("=")
            if sep and key == name:
                if len(value) >= 2 and value[0] == value[-1] == '"':
                    value = value[1:-1]
                return value
        return None

    def form_value(self, name: str) -> str:
        """Return the first form value for ``name``; body fields win over the query."""
        content_type = self.headers.get("content-type", "").split(";")[0].strip().lower()
        if self.method in _FORM_METHODS and content_type == _FORM_CONTENT_TYPE:
            fields = parse_qs(self.body.decode("utf-8", "replace"), keep_blank_values=True)
            if name in fields:
                return fields[name][0]
        return parse_qs(self.query, keep_blank_values=True).get(name, [""])[0]

    def with_context(self, context: Mapping[str, Any]) -> Request:
        """Return a copy of this request carrying ``context``."""
        return replace(self, context=context)


@dataclass
class Response:
    """An outgoing HTTP response."""

    status: int = 200
    headers: list[tuple[str, str]] = field(default_factory=list)
    body: bytes = b""

    def set_cookie(
        self,
        name: str,
        value: str,
        expires: Union[datetime, int, float, None] = None,
        path: Optional[str] = None,
    ) -> None:
        """Add a Set-Cookie header."""
        if " " in value or "," in value:
            value = f'"{value}"'
        parts = [f"{name}={value}"]
        if path:
            parts.append(f"Path={path}")
        if expires is not None:
            stamp = expires.timestamp() if isinstance(expires, datetime) else float(expires)
            parts.append(f"Expires={formatdate(stamp, usegmt=True)}")
        self.headers.append(("Set-Cookie", "; ".join(parts)))


def _plain_error(status: HTTPStatus, message: str) -> Response:
    return Response(
        status=int(status),
        headers=[
            ("Content-Type", "text/plain; charset=utf-8"),
            ("X-Content-Type-Options", "nosniff"),
        ],
        body=f"{message}\n".encode(),
    )


def _not_found() -> Response:
    return _plain_error(HTTPStatus.NOT_FOUND, "404 page not found")


def redirect(location: str, status: int = HTTPStatus.SEE_OTHER) -> Response:
    """Return a response redirecting to ``location``."""
    return Response(status=int(status), headers=[("Location", location)])


def _to_json(value: Any) -> Any:
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def json_response(value: Any, status: int = HTTPStatus.OK) -> Response:
    """Return ``value`` encoded as compact JSON followed by a newline."""
    text = json.dumps(value, default=_to_json, separators=(",", ":"), ensure_ascii=False)
    for char, escaped in _JSON_ESCAPES:
        text = text.replace(char, escaped)
    return Response(
        status=int(status),
        headers=[("Content-Type", "application/json")],
        body=(text + "\n").encode("utf-8"),
    )


def strip_prefix(prefix: str, handler: Handler) -> Handler:
    """Wrap ``handler`` so it sees paths without ``prefix``; other paths get 404."""
    if not prefix:
        return handler

    def stripped(request: Request) -> Response:
        if not request.path.startswith(prefix):
            return _not_found()
        return handler(replace(request, path=request.path[len(prefix):]))

    return stripped


class _Kind(Enum):
    LITERAL = 3
    WILDCARD = 2
    REST = 1


@dataclass(frozen=True)
class _Segment:
    kind: _Kind
    value: str


@dataclass(frozen=True)
class _Route:
    pattern: str
    method: str
    segments: tuple[_Segment, ...]
    subtree: bool
    handler: Handler

    @property
    def shape(self) -> tuple:
        return (
            self.method,
            tuple((s.kind, s.value if s.kind is _Kind.LITERAL else "") for s in self.segments),
            self.subtree,
        )

    @property
    def specificity(self) -> tuple:
        ranks = tuple(s.kind.value for s in self.segments) + ((0,) if self.subtree else ())
        return ranks, 1 if self.method else 0

    def accepts(self, method: str) -> bool:
        return not self.method or self.method == method or (
            self.method == "GET" and method == "HEAD"
        )

    def match_path(self, parts: list[str]) -> Optional[dict[str, str]]:
        values: dict[str, str] = {}
        for index, segment in enumerate(self.segments):
            if index >= len(parts):
                return None
            part = parts[index]
            if segment.kind is _Kind.REST:
                values[segment.value] = "/".join(parts[index:])
                return values
            if segment.kind is _Kind.LITERAL:
                if part != segment.value:
                    return None
            elif not part:
                return None
            else:
                values[segment.value] = part
        if self.subtree:
            return values if len(parts) > len(self.segments) else None
        return values if len(parts) == len(self.segments) else None

    def is_exact(self, parts: list[str]) -> bool:
        return not self.subtree or (
            len(parts) == len(self.segments) + 1 and parts[-1] == ""
        )


def _parse_pattern(pattern: str, handler: Handler) -> _Route:
    text = pattern.strip()
    method, _, path = text.rpartition(" ") if " " in text else ("", "", text)
    method, path = method.strip(), path.strip()
    if not path.startswith("/"):
        raise ValueError(f"pattern {pattern!r}: path must start with '/'")

    exact_slash = path.endswith("/{$}")
    if exact_slash:
        path = path[:-3]
    parts = path.split("/")[1:]
    subtree = False
    if parts[-1] == "" and not exact_slash:
        subtree = True
        parts = parts[:-1]

    segments = []
    names: set[str] = set()
    for index, part in enumerate(parts):
        if part.startswith("{") and part.endswith("}"):
            name = part[1:-1]
            kind = _Kind.WILDCARD
            if name.endswith("..."):
                name = name[:-3]
                kind = _Kind.REST
                if index != len(parts) - 1 or subtree:
                    raise ValueError(f"pattern {pattern!r}: '...' wildcard must be last")
            if not name.isidentifier() or name in names:
                raise ValueError(f"pattern {pattern!r}: bad wildcard name {name!r}")
            names.add(name)
            segments.append(_Segment(kind, name))
        elif "{" in part or "}" in part:
            raise ValueError(f"pattern {pattern!r}: malformed segment {part!r}")
        else:
            segments.append(_Segment(_Kind.LITERAL, part))
    return _Route(pattern, method, tuple(segments), subtree, handler)


def _status_line(status: int) -> str:
    try:
        phrase = HTTPStatus(status).phrase
    except ValueError:
        phrase = "Unknown"
    return f"{int(status)} {phrase}"


def _request_from_environ(environ: Mapping[str, Any]) -> Request:
    headers = {
        key[5:].replace("_", "-").lower(): value
        for key, value in environ.items()
        if key.startswith("HTTP_")
    }
    for key in ("CONTENT_TYPE", "CONTENT_LENGTH"):
        if environ.get(key):
            headers[key.replace("_", "-").lower()] = environ[key]
    try:
        length = int(environ.get("CONTENT_LENGTH") or 0)
    except ValueError:
        length = 0
    body = environ["wsgi.input"].read(length) if length > 0 and "wsgi.input" in environ else b""
    raw_path = environ.get("PATH_INFO") or "/"
    path = raw_path.encode("latin-1").decode("utf-8", "replace")
    return Request(
        method=environ.get("REQUEST_METHOD", "GET"),
        path=path,
        query=environ.get("QUERY_STRING", ""),
        headers=headers,
        body=body,
    )


class Mux:
    """A router that matches patterns such as ``"GET /items/{itemId}/"``."""

    def __init__(self) -> None:
        self._routes: list[_Route] = []
        self._middlewares: list[Middleware] = []

    def handle(self, pattern: str, handler: Handler) -> None:
        """Register ``handler`` for ``pattern``; raise ValueError on a bad or duplicate one."""
        route = _parse_pattern(pattern, handler)
        for existing in self._routes:
            if existing.shape == route.shape:
                raise ValueError(
                    f"pattern {pattern!r} conflicts with registered {existing.pattern!r}"
                )
        self._routes.append(route)

    def group(self, prefix: str, fn: Callable[[Mux], None]) -> Mux:
        """Build a sub-router with ``fn`` and mount it under ``prefix``."""
        child = Mux()
        fn(child)
        self.handle(prefix + "/", strip_prefix(prefix, child))
        return child

    def use(self, *args: Middleware) -> None:
        """Add middlewares; the first added runs outermost."""
        self._middlewares.extend(args)

    def __call__(self, request: Request) -> Response:
        handler: Handler = self._dispatch
        for middleware in reversed(self._middlewares):
            handler = middleware(handler)
        return handler(request)

    def wsgi_app(self, environ: Mapping[str, Any], start_response: Callable) -> Iterable[bytes]:
        """Serve a WSGI request."""
        request = _request_from_environ(environ)
        response = self(request)
        headers = list(response.headers)
        if not any(name.lower() == "content-length" for name, _ in headers):
            headers.append(("Content-Length", str(len(response.body))))
        start_response(_status_line(response.status), headers)
        return [] if request.method == "HEAD" else [response.body]

    def _match(self, method: str, parts: list[str]) -> tuple[Optional[_Route], dict[str, str]]:
        best: Optional[_Route] = None
        best_values: dict[str, str] = {}
        for route in self._routes:
            if not route.accepts(method):
                continue
            values = route.match_path(parts)
            if values is None:
                continue
            if best is None or route.specificity > best.specificity:
                best, best_values = route, values
        return best, best_values

    def _dispatch(self, request: Request) -> Response:
        path = request.path or "/"
        if not path.startswith("/"):
            return _not_found()
        parts = path.split("/")[1:]
        route, values = self._match(request.method, parts)

        if not (route and route.is_exact(parts)) and not path.endswith("/"):
            slash_parts = (path + "/").split("/")[1:]
            slash_route, _ = self._match(request.method, slash_parts)
            if slash_route is not None and slash_route.is_exact(slash_parts):
                location = path + "/" + (f"?{request.query}" if request.query else "")
                return redirect(location, HTTPStatus.MOVED_PERMANENTLY)

        if route is None:
            allowed = {
                r.method for r in self._routes if r.method and r.match_path(parts) is not None
            }
            if "GET" in allowed:
                allowed.add("HEAD")
            if allowed:
                response = _plain_error(HTTPStatus.METHOD_NOT_ALLOWED, "Method Not Allowed")
                response.headers.append(("Allow", ", ".join(sorted(allowed))))
                return response
            return _not_found()

        return route.handler(replace(request, path_values={**request.path_values, **values}))
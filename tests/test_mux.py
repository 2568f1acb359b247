import io
import json
from datetime import datetime, timezone
from http import HTTPStatus

import pytest

from cpaw.models import Item, Role, User
from cpaw.mux import (
    Mux,
    Request,
    Response,
    json_response,
    redirect,
    strip_prefix,
)


def text(body):
    def handler(request):
        return Response(body=body.encode())

    return handler


def echo_path(request):
    return Response(body=request.path.encode())


def echo_value(name):
    def handler(request):
        return Response(body=request.path_value(name).encode())

    return handler


def test_request_cookie_reads_named_value():
    request = Request(headers={"Cookie": "other=1; cpaw_session=token"})
    assert request.cookie("cpaw_session") == "token"
    assert request.cookie("other") == "1"


def test_request_cookie_strips_quotes():
    request = Request(headers={"cookie": 'cpaw_session="token"'})
    assert request.cookie("cpaw_session") == "token"


def test_request_cookie_missing_is_none():
    assert Request(headers={"Cookie": "a=b"}).cookie("cpaw_session") is None
    assert Request().cookie("cpaw_session") is None


def test_form_value_prefers_body_for_post():
    request = Request(
        method="POST",
        query="content=query&page=2",
        headers={"Content-Type": "application/x-www-form-urlencoded"},
        body=b"content=body+text",
    )
    assert request.form_value("content") == "body text"
    assert request.form_value("page") == "2"
    assert request.form_value("absent") == ""


def test_form_value_ignores_body_for_get():
    request = Request(
        method="GET",
        query="content=query",
        headers={"Content-Type": "application/x-www-form-urlencoded"},
        body=b"content=body",
    )
    assert request.form_value("content") == "query"


def test_with_context_returns_new_request():
    original = Request(path="/a/")
    derived = original.with_context({"key": "value"})
    assert derived.context == {"key": "value"}
    assert original.context == {}
    assert derived.path == original.path


def test_path_value_missing_is_empty():
    assert Request().path_value("itemId") == ""


def test_url_includes_query():
    assert Request(path="/items/", query="a=1").url == "/items/?a=1"
    assert Request(path="/items/").url == "/items/"


def test_set_cookie_header():
    response = Response()
    response.set_cookie("cpaw_session", "token", expires=0, path="/")
    assert response.headers == [
        ("Set-Cookie", "cpaw_session=token; Path=/; Expires=Thu, 01 Jan 1970 00:00:00 GMT")
    ]


def test_set_cookie_accepts_datetime():
    first, second = Response(), Response()
    moment = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    first.set_cookie("cpaw_session", "", expires=moment)
    second.set_cookie("cpaw_session", "", expires=int(moment.timestamp()))
    assert first.headers == second.headers
    assert "Path" not in first.headers[0][1]


def test_redirect_sets_location():
    response = redirect("/", HTTPStatus.SEE_OTHER)
    assert response.status == HTTPStatus.SEE_OTHER
    assert dict(response.headers)["Location"] == "/"


def test_json_response_is_compact_with_newline():
    response = json_response({"a": 1}, HTTPStatus.CREATED)
    assert response.status == HTTPStatus.CREATED
    assert response.body == b'{"a":1}\n'
    assert dict(response.headers)["Content-Type"] == "application/json"


def test_json_response_escapes_html():
    response = json_response("<a&b>", HTTPStatus.OK)
    assert b"<" not in response.body and b"&" not in response.body
    assert json.loads(response.body) == "<a&b>"


def test_json_response_encodes_models():
    item = Item(id="i", created_at=5, content="c", user_id="u")
    response = json_response([item], HTTPStatus.OK)
    assert json.loads(response.body) == [item.to_dict()]


def test_json_response_hides_password_hash():
    user = User(id="u", user_name="alice", password_hash="secret", role=Role.ADMIN)
    decoded = json.loads(json_response(user, HTTPStatus.OK).body)
    assert decoded == user.to_dict()
    assert "secret" not in json.dumps(decoded)


def test_json_response_rejects_unknown_objects():
    with pytest.raises(TypeError):
        json_response(object(), HTTPStatus.OK)


def test_strip_prefix_removes_prefix():
    handler = strip_prefix("/api", echo_path)
    assert handler(Request(path="/api/items/")).body == b"/items/"


def test_strip_prefix_without_match_is_not_found():
    handler = strip_prefix("/api", echo_path)
    assert handler(Request(path="/other/")).status == HTTPStatus.NOT_FOUND


def test_strip_prefix_empty_returns_handler():
    assert strip_prefix("", echo_path) is echo_path


def test_mux_routes_by_method():
    mux = Mux()
    mux.handle("GET /items/", text("list"))
    mux.handle("POST /items/", text("create"))
    assert mux(Request(method="GET", path="/items/")).body == b"list"
    assert mux(Request(method="POST", path="/items/")).body == b"create"


def test_mux_method_not_allowed_lists_methods():
    mux = Mux()
    mux.handle("GET /items/", text("list"))
    mux.handle("POST /items/", text("create"))
    response = mux(Request(method="DELETE", path="/items/"))
    assert response.status == HTTPStatus.METHOD_NOT_ALLOWED
    assert set(dict(response.headers)["Allow"].split(", ")) == {"GET", "HEAD", "POST"}


def test_mux_unknown_path_is_not_found():
    mux = Mux()
    mux.handle("GET /items/", text("list"))
    response = mux(Request(path="/nothing"))
    assert response.status == HTTPStatus.NOT_FOUND


def test_mux_head_served_by_get():
    mux = Mux()
    mux.handle("GET /items/", text("list"))
    assert mux(Request(method="HEAD", path="/items/")).body == b"list"


def test_mux_wildcard_sets_path_value():
    mux = Mux()
    mux.handle("GET /items/{itemId}/", echo_value("itemId"))
    assert mux(Request(path="/items/abc/")).body == b"abc"


def test_mux_rest_wildcard_takes_remainder():
    mux = Mux()
    mux.handle("/files/{rest...}", echo_value("rest"))
    assert mux(Request(path="/files/a/b/c")).body == b"a/b/c"


def test_mux_literal_beats_wildcard():
    mux = Mux()
    mux.handle("/{name}/", text("wild"))
    mux.handle("/items/", text("literal"))
    assert mux(Request(path="/items/")).body == b"literal"
    assert mux(Request(path="/other/")).body == b"wild"


def test_mux_method_pattern_beats_plain_pattern():
    mux = Mux()
    mux.handle("/items/", text("any"))
    mux.handle("POST /items/", text("post"))
    assert mux(Request(method="POST", path="/items/")).body == b"post"
    assert mux(Request(method="GET", path="/items/")).body == b"any"


def test_mux_subtree_matches_deeper_paths():
    mux = Mux()
    mux.handle("/", text("root"))
    mux.handle("/items/", text("items"))
    assert mux(Request(path="/items/a/b")).body == b"items"
    assert mux(Request(path="/anything")).body == b"root"


def test_mux_exact_slash_pattern():
    mux = Mux()
    mux.handle("/{$}", text("index"))
    assert mux(Request(path="/")).body == b"index"
    assert mux(Request(path="/x")).status == HTTPStatus.NOT_FOUND


def test_mux_redirects_to_subtree_root():
    mux = Mux()
    mux.handle("/", text("root"))
    mux.handle("/items/", text("items"))
    response = mux(Request(path="/items", query="q=1"))
    assert response.status == HTTPStatus.MOVED_PERMANENTLY
    assert dict(response.headers)["Location"] == "/items/?q=1"


def test_mux_group_strips_prefix():
    mux = Mux()
    seen = []

    def routes(child):
        child.handle("GET /{itemId}/", echo_value("itemId"))
        child.handle("GET /", echo_path)

    mux.group("/api/v1", routes)
    assert mux(Request(path="/api/v1/abc/")).body == b"abc"
    assert mux(Request(path="/api/v1/")).body == b"/"
    assert seen == []


def test_mux_group_middleware_stays_inside_group():
    calls = []

    def tag(next_handler):
        def handler(request):
            calls.append(request.path)
            return next_handler(request)

        return handler

    mux = Mux()
    mux.handle("/plain/", text("plain"))

    def routes(child):
        child.use(tag)
        child.handle("/", text("grouped"))

    mux.group("/g", routes)
    assert mux(Request(path="/plain/")).body == b"plain"
    assert calls == []
    assert mux(Request(path="/g/x/")).body == b"grouped"
    assert calls == ["/x/"]


def test_mux_middleware_order_first_is_outermost():
    order = []

    def named(name):
        def middleware(next_handler):
            def handler(request):
                order.append(name)
                return next_handler(request)

            return handler

        return middleware

    mux = Mux()
    mux.use(named("first"), named("second"))
    mux.use(named("third"))
    mux.handle("/", text("ok"))
    response = mux(Request(path="/"))
    assert response.body == b"ok"
    assert order == ["first", "second", "third"]


def test_mux_duplicate_pattern_raises():
    mux = Mux()
    mux.handle("GET /items/{itemId}/", text("a"))
    with pytest.raises(ValueError):
        mux.handle("GET /items/{other}/", text("b"))


@pytest.mark.parametrize(
    "pattern",
    ["items/", "GET items", "/a/{b", "/{1x}/", "/{a}/{a}/", "/{rest...}/x", "/{rest...}/"],
)
def test_mux_invalid_pattern_raises(pattern):
    with pytest.raises(ValueError):
        Mux().handle(pattern, text("x"))


def test_wsgi_app_serves_request():
    mux = Mux()

    def create(request):
        return Response(status=HTTPStatus.CREATED, body=request.form_value("content").encode())

    mux.handle("POST /items/", create)
    payload = b"content=hello"
    environ = {
        "REQUEST_METHOD": "POST",
        "PATH_INFO": "/items/",
        "QUERY_STRING": "",
        "CONTENT_TYPE": "application/x-www-form-urlencoded",
        "CONTENT_LENGTH": str(len(payload)),
        "wsgi.input": io.BytesIO(payload),
    }
    captured = {}

    def start_response(status, headers):
        captured["status"] = status
        captured["headers"] = dict(headers)

    body = b"".join(mux.wsgi_app(environ, start_response))
    assert body == b"hello"
    assert captured["status"] == "201 Created"
    assert captured["headers"]["Content-Length"] == str(len(b"hello"))


def test_wsgi_app_reads_cookies_from_headers():
    mux = Mux()
    mux.handle("/", lambda request: Response(body=(request.cookie("cpaw_session") or "").encode()))
    environ = {"REQUEST_METHOD": "GET", "PATH_INFO": "/", "HTTP_COOKIE": "cpaw_session=token"}
    body = b"".join(mux.wsgi_app(environ, lambda status, headers: None))
    assert body == b"token"
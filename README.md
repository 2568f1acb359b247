# cpaw

cpaw holds the building blocks of a small self-hosted clipboard: users paste
short pieces of text, see them listed newest first and delete them again,
while administrators manage accounts. Data lives in one SQLite database,
passwords are stored as bcrypt hashes and sessions are kept by token.

## Modules

- `cpaw.models` – the frozen dataclasses `Item`, `Session` and `User`, each
  with `to_dict()` giving its JSON form (`User.to_dict()` leaves out the
  password hash). `Role` is a string type with `Role.ADMIN` (`"admin"`) and
  `Role.USER` (`"user"`); `Role.is_valid()` tells whether a value is one of
  them and `all_roles()` lists both, administrators first.
- `cpaw.hashing` – `new_from_password(password)` returns a bcrypt hash
  (cost 10; passwords over 72 bytes raise `ValueError`) and
  `verify_password(password, password_hash)` checks one.
- `cpaw.database` – `Sqlite(db_path=":memory:", db_name="cpaw")` opens the
  database. `migrate_up()` applies pending schema migrations (users, sessions,
  items) and returns how many ran, `migrate_down()` reverts them all,
  `set_up()` migrates up and turns on foreign key checks, and `close()` closes
  the connection. It is a context manager; the open connection is
  `Sqlite.connection` and the applied schema version is `Sqlite.version`.
- `cpaw.repository` – `UserRepository`, `SessionRepository` and
  `ItemRepository`, each built on a `sqlite3` connection. Lookups that match
  nothing raise `NotFoundError`. Users are listed by name, items newest first;
  `SessionRepository.delete_expired()` removes sessions whose expiry has
  passed.
- `cpaw.items` – `ItemService`, the item operations on top of an
  `ItemRepository`.
- `cpaw.context` – `with_user_id`, `get_user_id`, `with_user` and `get_user`
  store and read the signed-in user id or user in an immutable mapping that a
  `Request` carries as its `context`.
- `cpaw.mux` – `Mux`, a router for patterns such as `"GET /items/{itemId}/"`
  (an optional method, `{name}` wildcards, `{name...}` for the rest of the
  path, a trailing `/` for a subtree). `handle` registers a handler, `group`
  mounts a sub-router under a prefix, `use` adds middleware (the first added
  runs outermost), and `wsgi_app` serves it as a WSGI application. Also
  `Request` (with `path_value`, `cookie`, `form_value`, `with_context`),
  `Response` (with `set_cookie`), `redirect`, `json_response` and
  `strip_prefix`. Unknown paths get 404, a path matched only by other methods
  gets 405 with an `Allow` header, and a path missing its trailing slash is
  redirected with 301 when the slashed form matches.
- `cpaw.middleware` – `logger` logs method, URL and status through the
  `logging` module, `add_trailing_slash` appends a `/` to the request path,
  and `recover` turns an exception raised by a handler into a 500 response.
- `cpaw.index_views`, `cpaw.item_views`, `cpaw.settings_views` – functions
  returning the HTML pages and fragments for the htmx front end:
  `index_page`, `sign_in_form`, `with_default_page`, `create_item_form`,
  `item_list`, `item`, `settings_page`, `settings_user_rows`,
  `settings_user_row` and `row_selection_drop_down`. Text taken from data is
  HTML-escaped.

## Storing users and items

```python
from cpaw.database import Sqlite
from cpaw.models import Role
from cpaw.repository import ItemRepository, NotFoundError, UserRepository

password = "password"

with Sqlite("cpaw.db", "cpaw") as sqlite:
    sqlite.set_up()

    users = UserRepository(sqlite.connection)
    items = ItemRepository(sqlite.connection)

    admin = users.create_user("admin", password, Role.ADMIN)
    items.create_item("hello clipboard", admin.id)

    for entry in items.list_items_for_user(admin.id):
        print(entry.created_at, entry.content)

    try:
        users.get_user_by_name("nobody")
    except NotFoundError:
        print("no such user")
```

User names are unique: `update_user_name` with a name that is already taken
raises `sqlite3.IntegrityError`. `create_user` with an empty or missing role
stores the user role.

## Serving requests

Handlers take a `Request` and return a `Response`.

```python
from wsgiref.simple_server import make_server

from cpaw.middleware import logger, recover
from cpaw.mux import Mux, json_response

def list_roles(request):
    return json_response(["admin", "user"], 200)

app = Mux()
app.use(logger)
app.use(recover)
app.handle("GET /roles/", list_roles)

with make_server("", 3000, app.wsgi_app) as server:
    server.serve_forever()
```

## What is not included

The package has no ready-made clipboard application: there is no sign-in or
account service that creates session tokens or checks them, no route handlers
wiring the views and repositories to URLs, no middleware that reads the
session cookie, no static file serving, and no command that starts a server.
Those pieces have to be written on top of the modules above.

## Running the tests

Install the `test` extra and run `pytest` from the project directory.
# dripchat

Building blocks for the chat and login side of a dating application:
a hub that relays messages between connected clients, a chat repository
over a DB-API connection, session storage and use cases, authentication
and CSRF guards, HTTP handlers and a small path router that ties them
together.

The package uses only the standard library.

## Modules

| Module | Contents |
| --- | --- |
| `dripchat.hasher` | `hash_and_salt`, `check_with_hash`, `get_sha1`: salted SHA-1 password hashes |
| `dripchat.logger` | `LogLevel`, `Logger` and the shared `DRIP_LOGGER` |
| `dripchat.responses` | `Request`, `Response`, `Cookie`, `HTTPError`, `ContextKey` and the envelope helpers `envelope`, `write_json`, `read_json`, `send_ok`, `send_data`, `send_error` |
| `dripchat.session` | `Session`, `create_session_cookie`, `new_session` |
| `dripchat.session_repository` | `SessionManager`, `open_session_manager`, `SessionRepositoryError` |
| `dripchat.auth_usecase` | `SessionUsecase`, `SessionContextError` |
| `dripchat.chat_models` | `Message`, `Chat`, `Messages`, `Chats` and their JSON forms |
| `dripchat.hub` | `Hub`, `ChatClient`, `new_chat_client` |
| `dripchat.chat_repository` | `PostgresChatRepository`, `ChatRepositoryError` and the SQL it runs |
| `dripchat.chat_usecase` | `ChatUseCase`, `ContextNilError` |
| `dripchat.permissions` | `Permission` (`check_auth`, `get_current_user`), `set_csrf`, `check_csrf` |
| `dripchat.chat_delivery` | `ChatHandler`, `MessagesWS` |
| `dripchat.auth_handler` | `SessionHandler` |
| `dripchat.routing` | `Router`, `set_chat_routing`, `set_session_routing` |

## Responses

Handlers take a `Response` and a `Request` and write a JSON envelope
into the response body:

```json
{"status":200,"body":{"Chats":[...]}}
```

Errors put their code in the envelope with a `null` body, for example
`{"status":404,"body":null}`, and pass the error message to a logger
method. The HTTP status of the `Response` itself stays 200 unless the
router or the websocket handshake sets it.

## Passwords

```python
from dripchat.hasher import check_with_hash, hash_and_salt

password = "password"
stored = hash_and_salt(None, password)  # eight random letters, then the SHA-1 hex digest
assert check_with_hash(stored, password)
assert not check_with_hash(stored, "other")
```

## Routing

```python
from dripchat.logger import DRIP_LOGGER
from dripchat.responses import Request, Response
from dripchat.routing import Router, set_chat_routing

router = Router()
chat_handler = set_chat_routing(DRIP_LOGGER, router, chat_usecase, auth_client)

w = Response()
router.dispatch(w, Request(method="GET", url="/api/v1/chats",
                           cookies={"sessionId": "token"}))
print(w.text())
```

`auth_client` is any object with `get_from_session(ctx, cookie)`
returning a `Session` and `get_by_id(ctx, session)` returning a user
with an `id` attribute; `chat_usecase` is typically a `ChatUseCase`.

`set_chat_routing` registers:

- `/api/v1/apiws`: the websocket handshake for live chat
- `GET /api/v1/chat/{id}&{lastId}`: up to 100 messages with a user, older than `lastId`
- `GET /api/v1/chats`: every chat of the current user with its latest message
- `DELETE /api/v1/chat/{id}`: delete the conversation with a user

`set_session_routing(logger, router, user_ucase, session_ucase, session_client)` registers:

- `POST /api/v1/auth/session`: log in
- `DELETE /api/v1/auth/session`: log out, expiring the `sessionId` and `csrf` cookies
- `GET /api/v1/auth/profile`: the current user
- `POST /api/v1/auth/profile`: sign up

`user_ucase` must offer `login(ctx, credentials)`, `signup(ctx, credentials)`
and `current_user(ctx)`; an exception from `signup` that carries an
integer `status` attribute sets the error code.

`Router.dispatch` calls the first route whose pattern and method match,
answers 405 when only the method differs and 404 otherwise.

## Guards

- `Permission.check_auth` reads the `sessionId` cookie, resolves it through
  the auth client and stores the `Session` under `ContextKey.USER_ID`;
  failure gives status 403.
- `Permission.get_current_user` loads the user for that session and stores
  it under `ContextKey.USER`; a missing session gives 403, a failed lookup 404.
- `set_csrf` issues a new `csrf` cookie (30 days) and `csrf` header.
- `check_csrf` requires the `x-csrf-Token` header to equal the `csrf`
  cookie, answering 419 otherwise, then issues a new token.

## Sessions

`create_session_cookie(password)` makes an MD5-derived `sessionId` cookie
for path `/api/v1`, valid ten hours, `Secure`, `HttpOnly`,
`SameSite=None`. `SessionManager` keeps sessions through a connection
offering `call(function_name, args)` and `eval(expression, args)`, using
the stored procedures `check_session`, `new_session` and
`delete_session`; `open_session_manager` runs `init()` first.
`SessionUsecase` adds sessions and deletes the one in the request context.

## Live chat

`Hub.run()` handles register, unregister and broadcast requests in order
and is meant to run on its own thread until `Hub.stop()`. A broadcast
message goes to every registered client whose user is the sender or
the recipient. `ChatClient.read_pump` saves each incoming message through
the repository and broadcasts the stored copy; `ChatClient.write_pump`
writes queued messages back to the client. `ChatUseCase.client_handler`
registers a client and starts both pumps on daemon threads.

## Chat storage

`PostgresChatRepository` takes a DB-API 2.0 connection whose driver
accepts `%(name)s` parameters. `delete_chat` raises
`ChatRepositoryError` when no messages were deleted, though
`ChatUseCase.delete_chat` ignores that error.

## What the package does not do

- It runs no server and has no command: `Router.dispatch` must be called
  from whatever HTTP server you use, with `Request` and `Response` objects
  built from it.
- It has no websocket transport. `ChatHandler.upgrade_ws` validates the
  handshake and computes `Sec-WebSocket-Accept`, but the connection itself
  comes from the `upgrader` callable you set on the handler; without one
  the endpoint answers with an error envelope.
- It opens no database or session-store connections and ships no
  database driver; you pass in connected objects.
- It has no user accounts: login, sign-up and user lookup come from the
  `user_ucase` and auth client you supply.

## Tests

The tests use pytest and live in `tests/`; install the `test` extra and
run `pytest`.
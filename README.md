# slashkit

slashkit lets you write Discord application commands as ordinary Python
functions. It registers them with the REST API and turns each incoming
interaction into a call of the matching function. It then builds the
answer from what the function returns.

## Declaring commands

### Slash commands

Decorate a function with `slashkit.slash.slash_command`.

- The first parameter receives a `slashkit.core.Context`. The context's
  `http` attribute is the client the handler was built with.
- Every further parameter becomes an option. It needs a type annotation and
  a description.

```python
from slashkit.core import Context, message_command
from slashkit.models import Message
from slashkit.slash import slash_command


@slash_command("Frobs some bits", options={"bits": "The bits to frob"})
def frob(context: Context, bits: int) -> str:
    return str(bits)


@slash_command("Prints 'Hello!' later")
async def greet(context: Context) -> str:
    return "Hello!"


def echo(context: Context, message: Message) -> str:
    return message.content


echo_command = message_command(echo)
```

#### Supported option types

These annotations are supported:

- `str`
- `int`
- `bool`
- `slashkit.models.User`
- `slashkit.models.InteractionChannel`
- `slashkit.models.Role`
- `slashkit.options.Mentionable`, which holds a user or a role in its
  `target`
- a subclass of `slashkit.options.Choices`

`Optional[T]` (or `T | None`) makes an option optional. The function then
receives `None` when the option is not given.

#### Choices

A `Choices` enum is offered to users as a list of integer choices.

- A member's value is a plain integer, `enum.auto()`, or
  `choice_name("shown name")`.
- A member without a value counts on from the previous member, starting at
  0.
- `choices()` lists the `(name, value)` pairs.
- `from_discriminant(value)` returns the member with that value, or `None`.

#### Option names

Option names must contain only lower-case letters and dashes. By default,
a parameter's option name is its own name with underscores replaced by
dashes. To choose another name, pass `rename`, for example
`rename={"type_option": "type"}`.

#### Return values

What the command function returns decides the reply:

- A plain function returns a `str` or a `CallbackData`. It is answered
  immediately.
- An `async` function is answered first with a deferred "loading" response.
  The handler then replaces the original response with the function's
  result.

#### Definition errors

Decorating raises `SlashCommandDefinitionError` when:

- a parameter lacks an annotation or a description;
- an option name is not kebab-case;
- an annotation is a type that is not supported;
- the return annotation is `None`;
- the function has `*args`, `**kwargs` or keyword-only parameters.

A `SlashCommand` can still be called like the function it wraps.
`describe()` returns the `SlashCommandDecl` to register.

### Message and user commands

`slashkit.core.message_command(func)` and `user_command(func)` wrap a
function that takes the context and the targeted `Message` or `User`. The
function may return any of these:

- a `str`;
- a `CallbackData`;
- an awaitable, which gives a deferred reply;
- a `slashkit.options.Reply`. Use `Reply.deferred(awaitable, ephemeral=True)`
  to make the loading message ephemeral.

### Message components

Register a component handler with `component_handler(func)`. It is called
with the context, the `Message` the component is on, and the
`ComponentData`. It returns a `ComponentResponse`, built by one of these:

- `ComponentResponse.message(data)`
- `ComponentResponse.update(data)`
- `ComponentResponse.deferred_message(future)`
- `ComponentResponse.deferred_update(future)`

## Registering and handling

```python
from slashkit.handler import Handler
from slashkit.rest import Client

http = Client("token", base_url=API_BASE_URL)
http.set_application_id(APPLICATION_ID)

handler = await (
    Handler.builder(http)
    .global_command("frob", frob)
    .guild_command(GUILD_ID, "greet", greet)
    .guild_command(GUILD_ID, "Echo", echo_command)
    .build()
)
```

### The REST client

`slashkit.rest.Client` sends requests under the given base URL.

- It uses its own `aiohttp` session unless you pass one as `session=`.
- Close it with `await http.close()`, or use it as `async with`.
- Failed requests and error statuses raise `HttpError`, a subclass of
  `slashkit.core.InteractionError`.

### Building the handler

`build()` replaces the global commands, then each guild's commands, with
the ones declared. It returns a `Handler` that matches interactions by the
command ids the service gave back.

### What `Handler.handle(interaction)` answers

| Interaction | Response |
|---|---|
| Ping | A pong. |
| Known command | The command's reply. |
| Unknown command | An ephemeral `Unknown command '/name'` message. |
| Slash command with an unknown or invalid option | An ephemeral `Invalid option 'name'` message. |
| Component interaction with no component handler registered | An ephemeral error message. |

### Answering interactions

There are two ways to feed interactions to the handler.

- **Gateway events:** `await handler.handle_event(event)`. It takes a parsed
  interaction or its JSON mapping. It posts the callback over HTTP. If the
  reply is deferred, it then waits for the result and edits the original
  response.
- **Webhook requests:** `handler.handle_request(method, headers, body,
  verify_key)`. It checks the request against a PyNaCl `VerifyKey` and
  returns an `HttpResponse` together with the deferred follow-up to
  schedule, if there is one. The status codes are:
  - 405 for a request that is not a `POST`;
  - 400 for missing or malformed signature headers or a malformed body;
  - 401 for a bad signature;
  - 200 with a JSON body otherwise.

  `slashkit.handler.process_request` performs the same checks alone. It
  raises `RequestRejected`, which carries the status.

## Example bot

`slashkit.examples.commands` holds a complete example command set:

- `frob`
- `random`
- `all-the-args`
- `greet`
- `rust-version`, which reads a TOML manifest from the URL in
  `RUST_MANIFEST_URL`
- `default`
- a `counter` with a button
- the message commands `Echo` and `Add Smiley`

`build_handler(guild_id, http)` registers them all in one guild.

`slashkit.examples.webhook.create_app(handler, verify_key)` builds an
aiohttp application. It answers every request with the handler and runs
deferred follow-ups as background tasks.

To run it, set these environment variables:

- `TOKEN`
- `APP_ID`
- `GUILD_ID`
- `PUBLIC_KEY`: the application's public key, as 64 hex digits
- `API_BASE_URL`

Then run:

```
slashkit-webhook [--host HOST] [--port PORT]
```

It listens on `0.0.0.0:8080` by default. Point the application's
interactions endpoint at it.

## What slashkit does not do

- **No gateway connection.** slashkit does not connect to the gateway
  itself. To use `handle_event`, you must receive `INTERACTION_CREATE`
  payloads with some other gateway client and pass them in.
- **Limited command features.** Subcommands, autocomplete and interaction
  types other than ping, application command and message component are not
  handled.
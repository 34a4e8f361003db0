# goodfirstbot

The core of a Telegram bot that lets each chat follow GitHub repositories
and be told when new issues appear under the labels it cares about, such as
"good first issue", "help wanted" or "bug".

## What is inside

- `goodfirstbot.pagination` – `Paginated` and `paginate(items, page)`: pages
  of ten items, with the page number clamped to the available range and
  `has_next()`, `has_prev()` and `page_items()` for navigation. An empty list
  counts as one page.
- `goodfirstbot.repo_entity` – `RepoEntity` (with `url()`), plus
  `parse_repo("owner/name")` and
  `repo_from_url("https://github.com/owner/name/...")`. Bad input raises
  `InvalidUrlError`, `InvalidFormatError` or `EmptyNameError`, all subclasses
  of `RepoEntityError` (itself a `ValueError`).
- `goodfirstbot.errors` – the GitHub error hierarchy (`GithubError`,
  `RateLimitedError`, `UnauthorizedError`, `GraphQLApiError`,
  `GithubRequestError`, `InvalidHeaderError`, `GithubSerializationError`) and
  the storage errors (`StorageError`, `DbError`, `DataIntegrityError`).
- `goodfirstbot.actions` – `CallbackAction`, the payloads carried by inline
  keyboard buttons, `serialize_action` (compact JSON, e.g. `"cmd-help"`) and
  `github_color_to_emoji`, which maps a label colour to a coloured circle.
- `goodfirstbot.keyboards` – `InlineKeyboardButton`, `InlineKeyboardMarkup`,
  `LabelNormalized` and the builders `build_repo_list_keyboard`,
  `build_repo_item_keyboard`, `build_repo_labels_keyboard` and
  `command_keyboard()`.
- `goodfirstbot.storage` – `SqliteStorage`, an asynchronous SQLite store for
  tracked repositories, their labels and the last poll time per chat. It
  creates its tables on `connect()` and can be used as an async context
  manager. New repositories start with the labels "good first issue",
  "beginner-friendly" and "help wanted".
- `goodfirstbot.repository` – `RepositoryService`, which enforces the
  per-user repository limit and the per-repository label limit
  (`LimitExceededError`), wraps other failures in `RepositoryServiceError`,
  and merges GitHub labels (`GithubLabel`) with the chat's selection, most
  used first, leaving out labels without issues.
- `goodfirstbot.poller` – `GithubPoller`, which every `poll_interval` seconds
  checks every tracked repository (at most `max_concurrency` at a time) and
  sends only `Issue`s created since the last poll; `filter_new_issues` does
  that selection. Rate limits, GraphQL errors and network errors skip a
  repository for one cycle; other GitHub and storage errors raise
  `PollerError`.
- `goodfirstbot.messaging` – `TelegramMessagingService`, which formats and
  sends every message the bot shows, over `TelegramBotApi`, a small
  `httpx`-based Bot API client. Failed requests raise `MessagingError`.
  `format_paginated_message_text` builds the header of paginated lists.

## Examples

```python
from goodfirstbot.pagination import paginate
from goodfirstbot.repo_entity import parse_repo, repo_from_url
from goodfirstbot.actions import github_color_to_emoji

repo = repo_from_url("https://github.com/rust-lang/rust/issues")
assert repo == parse_repo("rust-lang/rust")
print(repo.url())                        # https://github.com/rust-lang/rust

page = paginate(list(range(22)), 5)
print(page.page, page.total_pages)       # 3 3 – the page is clamped
print(page.has_prev(), page.has_next())  # True False

print(github_color_to_emoji("0E8A16"))   # 🟢
```

Storage:

```python
import asyncio
from goodfirstbot.repo_entity import parse_repo
from goodfirstbot.storage import SqliteStorage

async def main():
    async with SqliteStorage("sqlite::memory:") as storage:
        repo = parse_repo("owner/repo")
        await storage.add_repository(1, repo)
        print(await storage.toggle_label(1, repo, "bug"))  # True
        print(sorted(await storage.get_tracked_labels(1, repo)))

asyncio.run(main())
```

Messaging:

```python
from goodfirstbot.messaging import TelegramBotApi, TelegramMessagingService

async def greet(chat_id):
    async with TelegramBotApi("token") as bot:
        await TelegramMessagingService(bot).send_start_msg(chat_id)
```

## What this package does not do

- It has no GitHub client. `RepositoryService` and `GithubPoller` take a
  client object supplied by the application, with the coroutines
  `repo_exists(owner, name)`, `repo_labels(owner, name)` (returning
  `GithubLabel`s) and `repo_issues_by_label(owner, name, labels)` (returning
  `Issue`s), raising the errors in `goodfirstbot.errors`.
- It does not receive Telegram updates or dispatch commands and button
  presses; it only sends and edits messages. The help text is a plain string
  (`DEFAULT_HELP_TEXT`, or the `help_text` argument).
- It has no command to start the bot; the application wires storage, the
  repository service, the poller and the messaging service together.
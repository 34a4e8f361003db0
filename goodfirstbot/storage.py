"""SQLite-backed storage of tracked repositories, labels and poll times."""

from __future__ import annotations

import json
import logging
import sqlite3
import time
from typing import Any

import aiosqlite

from goodfirstbot.errors import DataIntegrityError, DbError
from goodfirstbot.repo_entity import RepoEntity, RepoEntityError, parse_repo

log = logging.getLogger(__name__)

INITIAL_DEFAULT_LABELS_JSON = '["good first issue","beginner-friendly","help wanted"]'

_SCHEMA = """
CREATE TABLE IF NOT EXISTS repositories (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    chat_id INTEGER NOT NULL,
    owner TEXT NOT NULL,
    name TEXT NOT NULL,
    name_with_owner TEXT NOT NULL,
    tracked_labels TEXT,
    UNIQUE (chat_id, name_with_owner)
);
CREATE TABLE IF NOT EXISTS poller_states (
    chat_id INTEGER NOT NULL,
    repository_full_name TEXT NOT NULL,
    last_poll_time INTEGER NOT NULL,
    PRIMARY KEY (chat_id, repository_full_name)
);
"""


def _database_path(database_url: str) -> str:
    path = database_url
    for prefix in ("sqlite://", "sqlite:"):
        if path.startswith(prefix):
            path = path[len(prefix):]
            break
    path = path.split("?", 1)[0]
    return path or ":memory:"


class SqliteStorage:
    """Repository storage in an SQLite database.

    Use as an async context manager, or call :meth:`connect` and :meth:`close`.
    """

    def __init__(self, database_url: str) -> None:
        self.database_url = database_url
        self._db: aiosqlite.Connection | None = None

    async def __aenter__(self) -> SqliteStorage:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def connect(self) -> None:
        """Open the database and create the schema if needed."""
        log.debug("Connecting to SQLite database: %s", self.database_url)
        try:
            self._db = await aiosqlite.connect(_database_path(self.database_url))
        except (sqlite3.Error, OSError) as e:
            raise DbError(f"Failed to connect to SQLite: {e}") from e
        try:
            await self._db.executescript(_SCHEMA)
            await self._db.commit()
        except sqlite3.Error as e:
            raise DbError(f"Failed to migrate SQLite database: {e}") from e
        log.debug("SQLite database migrated")

    async def close(self) -> None:
        """Close the database connection."""
        if self._db is not None:
            await self._db.close()
            self._db = None

    @property
    def _conn(self) -> aiosqlite.Connection:
        if self._db is None:
            raise DbError("Storage is not connected")
        return self._db

    async def _execute(self, context: str, sql: str, params: tuple[Any, ...]) -> int:
        try:
            cursor = await self._conn.execute(sql, params)
            affected = cursor.rowcount
            await cursor.close()
            await self._conn.commit()
        except sqlite3.Error as e:
            raise DbError(f"{context}: {e}") from e
        return affected

    async def _fetch_all(
        self, context: str, sql: str, params: tuple[Any, ...] = ()
    ) -> list[tuple[Any, ...]]:
        try:
            cursor = await self._conn.execute(sql, params)
            rows = await cursor.fetchall()
            await cursor.close()
        except sqlite3.Error as e:
            raise DbError(f"{context}: {e}") from e
        return list(rows)

    async def _fetch_optional(
        self, context: str, sql: str, params: tuple[Any, ...]
    ) -> tuple[Any, ...] | None:
        rows = await self._fetch_all(context, sql, params)
        return rows[0] if rows else None

    async def add_repository(self, chat_id: int, repository: RepoEntity) -> bool:
        """Track a repository; ``False`` if it was already tracked."""
        log.debug("Adding repository to SQLite: %r", repository)
        affected = await self._execute(
            "Failed to add repository to SQLite",
            "INSERT OR IGNORE INTO repositories "
            "(chat_id, owner, name, name_with_owner, tracked_labels) VALUES (?, ?, ?, ?, ?)",
            (
                chat_id,
                repository.owner,
                repository.name,
                repository.name_with_owner,
                INITIAL_DEFAULT_LABELS_JSON,
            ),
        )
        return affected > 0

    async def remove_repository(self, chat_id: int, name_with_owner: str) -> bool:
        """Stop tracking a repository; ``False`` if it was not tracked."""
        log.debug("Removing repository from SQLite: %s", name_with_owner)
        affected = await self._execute(
            "Failed to remove repository from SQLite",
            "DELETE FROM repositories WHERE chat_id = ? AND name_with_owner = ?",
            (chat_id, name_with_owner),
        )
        return affected > 0

    async def get_repos_per_user(self, chat_id: int) -> list[RepoEntity]:
        """The user's repositories, ordered case-insensitively by name."""
        log.debug("Getting repositories for user: %s", chat_id)
        rows = await self._fetch_all(
            f"Failed to fetch repos for user {chat_id}",
            "SELECT owner, name, name_with_owner FROM repositories "
            "WHERE chat_id = ? ORDER BY LOWER(name_with_owner) ASC",
            (chat_id,),
        )
        repos = []
        for _owner, _name, name_with_owner in rows:
            try:
                repos.append(parse_repo(name_with_owner))
            except RepoEntityError as e:
                raise DataIntegrityError(name_with_owner, e) from e
        return repos

    async def get_all_repos(self) -> dict[int, set[RepoEntity]]:
        """Every tracked repository, grouped by chat."""
        log.debug("Getting all repositories from SQLite")
        rows = await self._fetch_all(
            "Failed to get all repositories from SQLite",
            "SELECT chat_id, owner, name, name_with_owner FROM repositories",
        )
        result: dict[int, set[RepoEntity]] = {}
        for chat_id, owner, name, name_with_owner in rows:
            repo = RepoEntity(owner=owner, name=name, name_with_owner=name_with_owner)
            result.setdefault(chat_id, set()).add(repo)
        return result

    async def get_last_poll_time(self, chat_id: int, repository: RepoEntity) -> int | None:
        """Unix time of the last successful poll, or ``None`` if never polled."""
        log.debug("Getting last poll time for repository: %r", repository)
        row = await self._fetch_optional(
            "Failed to get last poll time from SQLite",
            "SELECT last_poll_time FROM poller_states "
            "WHERE chat_id = ? AND repository_full_name = ?",
            (chat_id, repository.name_with_owner),
        )
        return None if row is None else row[0]

    async def set_last_poll_time(self, chat_id: int, repository: RepoEntity) -> None:
        """Record the current time as the last poll time."""
        log.debug("Setting last poll time for repository: %r", repository)
        await self._execute(
            "Failed to set last poll time in SQLite",
            "INSERT OR REPLACE INTO poller_states "
            "(chat_id, repository_full_name, last_poll_time) VALUES (?, ?, ?)",
            (chat_id, repository.name_with_owner, int(time.time())),
        )

    async def get_tracked_labels(self, chat_id: int, repository: RepoEntity) -> set[str]:
        """The labels tracked for a repository; the repository must be tracked."""
        log.debug("Getting tracked labels for repository: %s", repository.name_with_owner)
        context = "Failed to get tracked labels from SQLite"
        row = await self._fetch_optional(
            context,
            "SELECT tracked_labels FROM repositories WHERE chat_id = ? AND name_with_owner = ?",
            (chat_id, repository.name_with_owner),
        )
        if row is None:
            raise DbError(f"{context}: no rows returned")
        raw = row[0] if row[0] is not None else "[]"
        try:
            decoded = json.loads(raw)
        except json.JSONDecodeError as e:
            raise DataIntegrityError(repository.name_with_owner, e) from e
        if not isinstance(decoded, list) or not all(isinstance(x, str) for x in decoded):
            raise DataIntegrityError(
                repository.name_with_owner, ValueError("expected a list of strings")
            )
        labels = set(decoded)
        log.debug("Tracked labels for repository %s: %s", repository.name_with_owner, labels)
        return labels

    async def toggle_label(self, chat_id: int, repository: RepoEntity, label_name: str) -> bool:
        """Add the label if untracked, remove it otherwise; ``True`` if now tracked."""
        log.debug("Toggling label for repository: %s", repository.name_with_owner)
        labels = await self.get_tracked_labels(chat_id, repository)
        labels ^= {label_name}
        await self._execute(
            "Failed to toggle label in SQLite",
            "UPDATE repositories SET tracked_labels = ? WHERE chat_id = ? AND name_with_owner = ?",
            (json.dumps(sorted(labels)), chat_id, repository.name_with_owner),
        )
        return label_name in labels

    async def count_repos_per_user(self, chat_id: int) -> int:
        """The number of repositories the user tracks."""
        log.debug("Counting repositories for user: %s", chat_id)
        row = await self._fetch_optional(
            f"Failed to count repositories in SQLite for user {chat_id}",
            "SELECT COUNT(*) FROM repositories WHERE chat_id = ?",
            (chat_id,),
        )
        count = 0 if row is None else row[0]
        return max(int(count), 0)
"""Periodic polling of GitHub for new issues on tracked labels."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Protocol

from goodfirstbot.errors import (
    GithubError,
    GithubRequestError,
    GraphQLApiError,
    RateLimitedError,
    StorageError,
)
from goodfirstbot.repo_entity import RepoEntity

log = logging.getLogger(__name__)

_EPOCH = datetime.fromtimestamp(0, timezone.utc)


class PollerError(Exception):
    """Polling failed in a way that should not be silently skipped."""

    def __init__(self, message: str, source: BaseException) -> None:
        super().__init__(message)
        self.source = source
        self.__cause__ = source

    @classmethod
    def _github(cls, source: GithubError) -> PollerError:
        return cls("Failed to poll GitHub issues", source)

    @classmethod
    def _storage(cls, source: StorageError) -> PollerError:
        return cls("Failed to access storage", source)


@dataclass(frozen=True)
class Issue:
    """An issue reported by GitHub; ``created_at`` is an RFC 3339 timestamp."""

    id: str = ""
    title: str = ""
    url: str = ""
    created_at: str = ""


class _GithubClient(Protocol):
    async def repo_issues_by_label(
        self, owner: str, name: str, labels: set[str]
    ) -> list[Issue]: ...


class _Storage(Protocol):
    async def get_all_repos(self) -> dict[int, set[RepoEntity]]: ...

    async def get_tracked_labels(self, chat_id: int, repository: RepoEntity) -> set[str]: ...

    async def get_last_poll_time(self, chat_id: int, repository: RepoEntity) -> int | None: ...

    async def set_last_poll_time(self, chat_id: int, repository: RepoEntity) -> None: ...


class _Messaging(Protocol):
    async def send_new_issues_msg(
        self, chat_id: int, repo_name_with_owner: str, issues: list[Issue]
    ) -> Any: ...


def _parse_rfc3339(value: str) -> datetime | None:
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return parsed if parsed.tzinfo is not None else None


def filter_new_issues(issues: Iterable[Issue], last_poll_time: datetime) -> list[Issue]:
    """Issues created strictly after ``last_poll_time``; unparseable dates are dropped."""
    result = []
    for issue in issues:
        created = _parse_rfc3339(issue.created_at)
        if created is not None and created > last_poll_time:
            result.append(issue)
    return result


class GithubPoller:
    """Polls tracked repositories and notifies chats of new issues."""

    def __init__(
        self,
        github_client: _GithubClient,
        storage: _Storage,
        messaging_service: _Messaging,
        poll_interval: float,
        max_concurrency: int,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.github_client = github_client
        self.storage = storage
        self.messaging_service = messaging_service
        self.poll_interval = poll_interval
        self.max_concurrency = max_concurrency

    async def run(self) -> None:
        """Poll every ``poll_interval`` seconds until a storage error stops it."""
        log.debug("Starting GitHub poller")
        loop = asyncio.get_running_loop()
        next_tick = loop.time()
        while True:
            delay = next_tick - loop.time()
            if delay > 0:
                await asyncio.sleep(delay)
            next_tick += self.poll_interval
            try:
                repos_by_chat_id = await self.storage.get_all_repos()
            except StorageError as e:
                raise PollerError._storage(e) from e
            await self.poll_all_repos(repos_by_chat_id)

    async def poll_all_repos(self, repos_by_chat_id: Mapping[int, Iterable[RepoEntity]]) -> None:
        """Poll every repository of every chat, a bounded number at a time."""
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def poll(chat_id: int, repo: RepoEntity) -> None:
            async with semaphore:
                try:
                    await self.poll_user_repo(chat_id, repo)
                except PollerError as e:
                    log.error("Error polling repo: %r", e)

        await asyncio.gather(
            *(
                poll(chat_id, repo)
                for chat_id, repos in repos_by_chat_id.items()
                for repo in repos
            )
        )

    async def poll_user_repo(self, chat_id: int, repo: RepoEntity) -> None:
        """Poll one repository for one chat and send any new issues."""
        log.debug("Polling issues for repository: %s", repo.name_with_owner)

        try:
            tracked_labels = await self.storage.get_tracked_labels(chat_id, repo)
        except StorageError as e:
            raise PollerError._storage(e) from e

        if not tracked_labels:
            log.debug("No tracked labels for repository: %s", repo.name_with_owner)
            return

        try:
            last_poll = await self.storage.get_last_poll_time(chat_id, repo)
        except StorageError as e:
            raise PollerError._storage(e) from e
        last_poll_time = (
            _EPOCH if last_poll is None else datetime.fromtimestamp(last_poll, timezone.utc)
        )

        try:
            issues = await self.github_client.repo_issues_by_label(
                repo.owner, repo.name, tracked_labels
            )
        except GraphQLApiError as e:
            log.error(
                "A GraphQL API error occurred while polling repo %s (chat %s): %s. "
                "Skipping this repo for this cycle.",
                repo.name_with_owner, chat_id, e.message,
            )
            return
        except RateLimitedError:
            log.warning(
                "Rate limit exceeded while polling issues for repository %s. Will retry later.",
                repo.name_with_owner,
            )
            return
        except GithubRequestError as e:
            log.warning(
                "A network/HTTP request error occurred for repo %s (chat %s): %s. "
                "Skipping this repo for this cycle.",
                repo.name_with_owner, chat_id, e.source,
            )
            return
        except GithubError as e:
            log.error(
                "Fatal error while polling issues for repository %s: %r",
                repo.name_with_owner, e,
            )
            raise PollerError._github(e) from e

        to_notify = filter_new_issues(issues, last_poll_time)
        if not to_notify:
            log.debug("No new issues to notify for %s", repo.name_with_owner)
            return

        log.debug("Sending new issues message to chat: %s", chat_id)
        try:
            await self.messaging_service.send_new_issues_msg(
                chat_id, repo.name_with_owner, to_notify
            )
        except Exception as e:  # the last poll time stays put so the next cycle retries
            log.error(
                "Failed to send new issues message for repo %s: %r. Will be retried next cycle",
                repo.name_with_owner, e,
            )
            return

        try:
            await self.storage.set_last_poll_time(chat_id, repo)
        except StorageError as e:
            log.error("Failed to update last poll time for repo %s: %r", repo.name_with_owner, e)
        else:
            log.debug(
                "Sent notifications and updated last poll time for repo %s in chat %s",
                repo.name_with_owner, chat_id,
            )
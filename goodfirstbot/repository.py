"""Tracking of repositories and labels, with per-user limits."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Protocol

from goodfirstbot.errors import GithubError, StorageError
from goodfirstbot.keyboards import LabelNormalized
from goodfirstbot.pagination import Paginated, paginate
from goodfirstbot.repo_entity import RepoEntity

log = logging.getLogger(__name__)


class RepositoryServiceError(Exception):
    """A repository operation failed."""

    def __init__(self, message: str, source: BaseException | None = None) -> None:
        super().__init__(message)
        self.source = source
        if source is not None:
            self.__cause__ = source


class LimitExceededError(RepositoryServiceError):
    """The user has reached a configured limit."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Limit exceeded for user: {message}")
        self.message = message


@dataclass(frozen=True)
class GithubLabel:
    """A label as reported by GitHub, with its open-issue count if known."""

    name: str
    color: str
    issues_count: int | None = None

    @property
    def count(self) -> int:
        """The issue count, zero when unknown."""
        return self.issues_count or 0


class _GithubClient(Protocol):
    async def repo_exists(self, owner: str, name: str) -> bool: ...

    async def repo_labels(self, owner: str, name: str) -> list[GithubLabel]: ...


class _Storage(Protocol):
    async def count_repos_per_user(self, chat_id: int) -> int: ...

    async def add_repository(self, chat_id: int, repository: RepoEntity) -> bool: ...

    async def remove_repository(self, chat_id: int, name_with_owner: str) -> bool: ...

    async def get_repos_per_user(self, chat_id: int) -> list[RepoEntity]: ...

    async def get_tracked_labels(self, chat_id: int, repository: RepoEntity) -> set[str]: ...

    async def toggle_label(
        self, chat_id: int, repository: RepoEntity, label_name: str
    ) -> bool: ...


@contextmanager
def _translate_errors() -> Iterator[None]:
    try:
        yield
    except GithubError as e:
        raise RepositoryServiceError("Github client error", e) from e
    except StorageError as e:
        raise RepositoryServiceError(f"Storage error: {e}", e) from e


class RepositoryService:
    """Adds, removes and lists tracked repositories and toggles their labels."""

    def __init__(
        self,
        storage: _Storage,
        github_client: _GithubClient,
        max_repos_per_user: int,
        max_labels_per_repo: int,
    ) -> None:
        self.storage = storage
        self.github_client = github_client
        self.max_repos_per_user = max_repos_per_user
        self.max_labels_per_repo = max_labels_per_repo

    async def repo_exists(self, owner: str, name: str) -> bool:
        """Whether the repository exists on GitHub."""
        with _translate_errors():
            return await self.github_client.repo_exists(owner, name)

    async def add_repo(self, chat_id: int, repo: RepoEntity) -> bool:
        """Track a repository; ``False`` if it was already tracked."""
        with _translate_errors():
            count = await self.storage.count_repos_per_user(chat_id)
        if count >= self.max_repos_per_user:
            raise LimitExceededError(
                f"User {chat_id} has reached the maximum number of repositories: "
                f"{self.max_repos_per_user}"
            )
        with _translate_errors():
            return await self.storage.add_repository(chat_id, repo)

    async def remove_repo(self, chat_id: int, repo_name_with_owner: str) -> bool:
        """Stop tracking a repository; ``False`` if it was not tracked."""
        with _translate_errors():
            return await self.storage.remove_repository(chat_id, repo_name_with_owner)

    async def get_user_repos(self, chat_id: int, page: int) -> Paginated[RepoEntity]:
        """The user's repositories, paginated."""
        with _translate_errors():
            repos = await self.storage.get_repos_per_user(chat_id)
        return paginate(repos, page)

    async def get_repo_github_labels(
        self, chat_id: int, repo: RepoEntity, page: int
    ) -> Paginated[LabelNormalized]:
        """The repository's labels that have issues, most used first, paginated."""
        with _translate_errors():
            tracked = await self.storage.get_tracked_labels(chat_id, repo)
            labels = await self.github_client.repo_labels(repo.owner, repo.name)
        ranked = sorted(labels, key=lambda label: label.count, reverse=True)
        normalized = [
            LabelNormalized(
                name=label.name,
                color=label.color,
                count=label.count,
                is_selected=label.name in tracked,
            )
            for label in ranked
            if label.count > 0
        ]
        return paginate(normalized, page)

    async def get_user_repo_labels(self, chat_id: int, repo: RepoEntity) -> list[str]:
        """The labels the user tracks for a repository."""
        with _translate_errors():
            tracked = await self.storage.get_tracked_labels(chat_id, repo)
        return list(tracked)

    async def toggle_label(self, chat_id: int, repo: RepoEntity, label_name: str) -> bool:
        """Add the label if untracked, remove it otherwise; ``True`` if it was added."""
        with _translate_errors():
            tracked = await self.storage.get_tracked_labels(chat_id, repo)
        is_selected = label_name in tracked
        if not is_selected and len(tracked) >= self.max_labels_per_repo:
            raise LimitExceededError(
                f"User {chat_id} has reached the maximum number of labels per repository: "
                f"{self.max_labels_per_repo}"
            )
        with _translate_errors():
            await self.storage.toggle_label(chat_id, repo, label_name)
        return not is_selected
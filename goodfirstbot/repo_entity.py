"""GitHub repository identifiers and their parsing."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlsplit

GITHUB_URL = "https://github.com"


class RepoEntityError(ValueError):
    """A repository reference could not be parsed."""


class InvalidUrlError(RepoEntityError):
    """The text is not a GitHub repository URL."""

    def __init__(self, value: str) -> None:
        super().__init__(f"Invalid URL: {value}")
        self.value = value


class InvalidFormatError(RepoEntityError):
    """The text is not of the form ``owner/name``."""

    def __init__(self, value: str) -> None:
        super().__init__(f"Invalid repository format: {value}")
        self.value = value


class EmptyNameError(RepoEntityError):
    """The owner or the repository name is empty."""

    def __init__(self) -> None:
        super().__init__("Owner or repository name cannot be empty")


@dataclass(frozen=True)
class RepoEntity:
    """A repository on GitHub, identified by owner and name."""

    owner: str
    name: str
    name_with_owner: str

    def url(self) -> str:
        """The repository's web address on GitHub."""
        return f"{GITHUB_URL}/{self.owner}/{self.name}"

    def __str__(self) -> str:
        return f"{self.name_with_owner} ({self.url()})"


def parse_repo(text: str) -> RepoEntity:
    """Parse ``owner/name`` into a repository."""
    owner, sep, name = text.partition("/")
    if not sep:
        raise InvalidFormatError(text)
    if not owner or not name:
        raise EmptyNameError()
    if "/" in name:
        raise InvalidFormatError("Name contains '/'")
    return RepoEntity(owner=owner, name=name, name_with_owner=f"{owner}/{name}")


def repo_from_url(url: str) -> RepoEntity:
    """Parse a GitHub URL such as ``https://github.com/owner/name/...`` into a repository."""
    try:
        parts = urlsplit(url.strip())
        host = parts.hostname
    except ValueError:
        raise InvalidUrlError(url) from None
    if not parts.scheme or host != "github.com":
        raise InvalidUrlError(url)

    path = parts.path[1:] if parts.path.startswith("/") else parts.path
    segments = path.split("/")
    if len(segments) < 2:
        raise InvalidUrlError(url)
    owner, name = segments[0], segments[1]
    if not owner or not name:
        raise EmptyNameError()
    return RepoEntity(owner=owner, name=name, name_with_owner=f"{owner}/{name}")
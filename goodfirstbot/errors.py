"""Errors raised by the GitHub client and by repository storage."""

from __future__ import annotations


class GithubError(Exception):
    """A request to the GitHub API failed."""


class RateLimitedError(GithubError):
    """GitHub refused the request because the rate limit was exceeded."""

    def __init__(self) -> None:
        super().__init__("GitHub API rate limit exceeded")


class UnauthorizedError(GithubError):
    """GitHub rejected the credentials."""

    def __init__(self) -> None:
        super().__init__("Unauthorized: invalid GitHub credentials")


class GraphQLApiError(GithubError):
    """The GraphQL API answered with an error."""

    def __init__(self, message: str) -> None:
        super().__init__(f"GraphQL API error: {message}")
        self.message = message


class GithubRequestError(GithubError):
    """The HTTP request itself failed."""

    def __init__(self, source: BaseException) -> None:
        super().__init__(f"Request error: {source}")
        self.source = source
        self.__cause__ = source


class InvalidHeaderError(GithubError):
    """A request header could not be built."""

    def __init__(self, value: str) -> None:
        super().__init__(f"Invalid header value: {value}")
        self.value = value


class GithubSerializationError(GithubError):
    """A request or response body could not be (de)serialized."""

    def __init__(self, source: BaseException) -> None:
        super().__init__(f"Serialization error: {source}")
        self.source = source
        self.__cause__ = source


class StorageError(Exception):
    """Repository storage failed."""


class DbError(StorageError):
    """The database reported an error."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Database error: {message}")
        self.message = message


class DataIntegrityError(StorageError):
    """A stored record could not be turned back into a valid value."""

    def __init__(self, repository: str, source: BaseException) -> None:
        super().__init__(
            f"Data integrity error: Stored repository '{repository}' is invalid: {source}"
        )
        self.repository = repository
        self.source = source
        self.__cause__ = source
import asyncio
from datetime import datetime, timezone

import pytest

from goodfirstbot.errors import (
    DbError,
    GithubRequestError,
    GraphQLApiError,
    RateLimitedError,
    UnauthorizedError,
)
from goodfirstbot.poller import GithubPoller, Issue, PollerError, filter_new_issues
from goodfirstbot.repo_entity import parse_repo

OWNER = "owner"
REPO_NAME = "repo"
REPO_NAME_WITH_OWNER = "owner/repo"
CHAT_ID = 123
LAST_POLL_TIME = 1715817600


def default_repo():
    return parse_repo(REPO_NAME_WITH_OWNER)


def stamp(offset):
    return datetime.fromtimestamp(LAST_POLL_TIME + offset, timezone.utc).isoformat()


class Fake:
    def __init__(self, **responses):
        self.responses = responses
        self.calls = []

    async def _respond(self, name, *args):
        self.calls.append((name, args))
        result = self.responses[name]
        if isinstance(result, BaseException):
            raise result
        return result

    def names(self):
        return [name for name, _ in self.calls]


class FakeStorage(Fake):
    async def get_all_repos(self):
        return await self._respond("get_all_repos")

    async def get_tracked_labels(self, chat_id, repository):
        return set(await self._respond("get_tracked_labels", chat_id, repository))

    async def get_last_poll_time(self, chat_id, repository):
        return await self._respond("get_last_poll_time", chat_id, repository)

    async def set_last_poll_time(self, chat_id, repository):
        return await self._respond("set_last_poll_time", chat_id, repository)


class FakeGithub(Fake):
    async def repo_issues_by_label(self, owner, name, labels):
        return await self._respond("repo_issues_by_label", owner, name, set(labels))


class FakeMessaging(Fake):
    async def send_new_issues_msg(self, chat_id, repo_name_with_owner, issues):
        return await self._respond("send_new_issues_msg", chat_id, repo_name_with_owner, issues)


def make_poller(github, storage, messaging, max_concurrency=10):
    return GithubPoller(github, storage, messaging, 10, max_concurrency)


def test_filter_new_issues():
    last = datetime.fromtimestamp(LAST_POLL_TIME, timezone.utc)
    issues = [Issue(created_at=stamp(1)), Issue(created_at=stamp(-1))]
    assert filter_new_issues(issues, last) == [Issue(created_at=stamp(1))]


def test_filter_new_issues_accepts_z_and_drops_invalid():
    last = datetime.fromtimestamp(0, timezone.utc)
    issues = [
        Issue(id="z", created_at="2024-05-16T00:00:01Z"),
        Issue(id="bad", created_at="not a date"),
        Issue(id="naive", created_at="2024-05-16T00:00:01"),
    ]
    assert [issue.id for issue in filter_new_issues(issues, last)] == ["z"]


@pytest.mark.asyncio
async def test_poll_user_repo_new_issues():
    issue_new = Issue(created_at=stamp(1))
    issue_old = Issue(created_at=stamp(-1))
    github = FakeGithub(repo_issues_by_label=[issue_new, issue_old])
    storage = FakeStorage(
        get_tracked_labels={"label name"},
        get_last_poll_time=LAST_POLL_TIME,
        set_last_poll_time=None,
    )
    messaging = FakeMessaging(send_new_issues_msg=None)

    await make_poller(github, storage, messaging).poll_user_repo(CHAT_ID, default_repo())

    assert github.calls == [("repo_issues_by_label", (OWNER, REPO_NAME, {"label name"}))]
    assert messaging.calls == [
        ("send_new_issues_msg", (CHAT_ID, REPO_NAME_WITH_OWNER, [issue_new]))
    ]
    assert ("set_last_poll_time", (CHAT_ID, default_repo())) in storage.calls


@pytest.mark.asyncio
async def test_poll_user_repo_no_issues():
    issue_old = Issue(created_at=stamp(-1))
    github = FakeGithub(repo_issues_by_label=[issue_old, issue_old])
    storage = FakeStorage(get_tracked_labels={"label name"}, get_last_poll_time=LAST_POLL_TIME)
    messaging = FakeMessaging()

    await make_poller(github, storage, messaging).poll_user_repo(CHAT_ID, default_repo())

    assert messaging.calls == []
    assert "set_last_poll_time" not in storage.names()


@pytest.mark.asyncio
async def test_poll_user_repo_never_polled_sends_everything():
    issue = Issue(created_at=stamp(-1000))
    github = FakeGithub(repo_issues_by_label=[issue])
    storage = FakeStorage(
        get_tracked_labels={"bug"}, get_last_poll_time=None, set_last_poll_time=None
    )
    messaging = FakeMessaging(send_new_issues_msg=None)

    await make_poller(github, storage, messaging).poll_user_repo(CHAT_ID, default_repo())

    assert messaging.calls == [("send_new_issues_msg", (CHAT_ID, REPO_NAME_WITH_OWNER, [issue]))]


@pytest.mark.asyncio
async def test_poll_user_repo_no_tracked_labels_skips():
    github = FakeGithub()
    storage = FakeStorage(get_tracked_labels=set())
    messaging = FakeMessaging()

    await make_poller(github, storage, messaging).poll_user_repo(CHAT_ID, default_repo())

    assert storage.calls == [("get_tracked_labels", (CHAT_ID, default_repo()))]
    assert github.calls == []
    assert messaging.calls == []


@pytest.mark.asyncio
async def test_poll_user_repo_github_unauthorized_error():
    github = FakeGithub(repo_issues_by_label=UnauthorizedError())
    storage = FakeStorage(
        get_tracked_labels={"bug", "enhancement"}, get_last_poll_time=LAST_POLL_TIME
    )
    messaging = FakeMessaging()

    with pytest.raises(PollerError) as info:
        await make_poller(github, storage, messaging).poll_user_repo(CHAT_ID, default_repo())

    assert isinstance(info.value.source, UnauthorizedError)
    assert github.calls == [
        ("repo_issues_by_label", (OWNER, REPO_NAME, {"bug", "enhancement"}))
    ]
    assert messaging.calls == []
    assert "set_last_poll_time" not in storage.names()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        RateLimitedError(),
        GraphQLApiError("Could not resolve to a Repository"),
        GithubRequestError(OSError("connection reset")),
    ],
)
async def test_poll_user_repo_non_fatal_github_errors(error):
    github = FakeGithub(repo_issues_by_label=error)
    storage = FakeStorage(
        get_tracked_labels={"bug", "enhancement"}, get_last_poll_time=LAST_POLL_TIME
    )
    messaging = FakeMessaging()

    await make_poller(github, storage, messaging).poll_user_repo(CHAT_ID, default_repo())

    assert github.names() == ["repo_issues_by_label"]
    assert messaging.calls == []
    assert "set_last_poll_time" not in storage.names()


@pytest.mark.asyncio
async def test_poll_user_repo_set_lpt_fails():
    issue_new = Issue(id="new_id_lpt_fail", created_at=stamp(1))
    github = FakeGithub(repo_issues_by_label=[issue_new])
    storage = FakeStorage(
        get_tracked_labels={"bug", "enhancement"},
        get_last_poll_time=LAST_POLL_TIME,
        set_last_poll_time=DbError("Failed to write LPT"),
    )
    messaging = FakeMessaging(send_new_issues_msg=None)

    await make_poller(github, storage, messaging).poll_user_repo(CHAT_ID, default_repo())

    assert storage.names().count("set_last_poll_time") == 1
    assert messaging.names() == ["send_new_issues_msg"]


@pytest.mark.asyncio
async def test_poll_user_repo_send_failure_keeps_poll_time():
    github = FakeGithub(repo_issues_by_label=[Issue(created_at=stamp(1))])
    storage = FakeStorage(get_tracked_labels={"bug"}, get_last_poll_time=LAST_POLL_TIME)
    messaging = FakeMessaging(send_new_issues_msg=RuntimeError("telegram down"))

    await make_poller(github, storage, messaging).poll_user_repo(CHAT_ID, default_repo())

    assert messaging.names() == ["send_new_issues_msg"]
    assert "set_last_poll_time" not in storage.names()


@pytest.mark.asyncio
async def test_poll_user_repo_get_tracked_labels_storage_error():
    storage = FakeStorage(get_tracked_labels=DbError("DB init fail"))
    poller = make_poller(FakeGithub(), storage, FakeMessaging())

    with pytest.raises(PollerError) as info:
        await poller.poll_user_repo(CHAT_ID, default_repo())

    assert isinstance(info.value.source, DbError)
    assert info.value.source.message == "DB init fail"


@pytest.mark.asyncio
async def test_poll_user_repo_get_last_poll_time_storage_error():
    storage = FakeStorage(
        get_tracked_labels={"bug", "enhancement"},
        get_last_poll_time=DbError("LPT read fail"),
    )
    poller = make_poller(FakeGithub(), storage, FakeMessaging())

    with pytest.raises(PollerError) as info:
        await poller.poll_user_repo(CHAT_ID, default_repo())

    assert isinstance(info.value.source, DbError)
    assert info.value.source.message == "LPT read fail"


@pytest.mark.asyncio
async def test_poll_all_repos_continues_after_errors():
    github = FakeGithub(repo_issues_by_label=UnauthorizedError())
    storage = FakeStorage(get_tracked_labels={"bug"}, get_last_poll_time=None)
    poller = make_poller(github, storage, FakeMessaging())
    repos = {1: {parse_repo("a/one"), parse_repo("a/two")}, 2: {parse_repo("b/three")}}

    await poller.poll_all_repos(repos)

    polled = sorted(args[1] for _, args in github.calls)
    assert polled == ["one", "three", "two"]


@pytest.mark.asyncio
async def test_poll_all_repos_respects_max_concurrency():
    state = {"active": 0, "peak": 0}

    class SlowGithub:
        async def repo_issues_by_label(self, owner, name, labels):
            state["active"] += 1
            state["peak"] = max(state["peak"], state["active"])
            await asyncio.sleep(0.01)
            state["active"] -= 1
            return []

    storage = FakeStorage(get_tracked_labels={"bug"}, get_last_poll_time=None)
    poller = make_poller(SlowGithub(), storage, FakeMessaging(), max_concurrency=2)
    repos = {1: {parse_repo(f"owner/repo{i}") for i in range(6)}}

    await poller.poll_all_repos(repos)

    assert state["peak"] == 2
    assert storage.names().count("get_tracked_labels") == 6


@pytest.mark.asyncio
async def test_run_stops_on_storage_error():
    storage = FakeStorage(get_all_repos=DbError("gone"))
    poller = make_poller(FakeGithub(), storage, FakeMessaging())

    with pytest.raises(PollerError) as info:
        await poller.run()

    assert isinstance(info.value.source, DbError)
    assert str(info.value) == "Failed to access storage"


def test_rejects_zero_concurrency():
    with pytest.raises(ValueError):
        GithubPoller(FakeGithub(), FakeStorage(), FakeMessaging(), 10, 0)
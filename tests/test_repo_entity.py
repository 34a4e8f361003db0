import pytest

from goodfirstbot.repo_entity import (
    EmptyNameError,
    InvalidFormatError,
    InvalidUrlError,
    RepoEntity,
    RepoEntityError,
    parse_repo,
    repo_from_url,
)


def test_from_str():
    repo = parse_repo("rust-lang/rust")
    assert repo.owner == "rust-lang"
    assert repo.name == "rust"
    assert repo.name_with_owner == "rust-lang/rust"


def test_from_url():
    repo = repo_from_url("https://github.com/rust-lang/rust")
    assert repo.owner == "rust-lang"
    assert repo.name == "rust"
    assert repo.name_with_owner == "rust-lang/rust"


def test_from_url_invalid():
    with pytest.raises(RepoEntityError):
        repo_from_url("https://gitlab.com/rust-lang/rust")


def test_from_str_invalid():
    with pytest.raises(RepoEntityError):
        parse_repo("rust-lang")


def test_from_str_invalid_owner():
    with pytest.raises(RepoEntityError):
        parse_repo("/rust-lang/rust")


def test_from_str_missing_name():
    with pytest.raises(RepoEntityError):
        parse_repo("rust-lang/")


def test_from_url_with_path():
    repo = repo_from_url("https://github.com/rust-lang/rust/issues")
    assert repo.owner == "rust-lang"
    assert repo.name == "rust"
    assert repo.name_with_owner == "rust-lang/rust"


def test_from_url_with_query():
    repo = repo_from_url("https://github.com/rust-lang/rust?tab=issues")
    assert repo.owner == "rust-lang"
    assert repo.name == "rust"
    assert repo.name_with_owner == "rust-lang/rust"


def test_from_url_not_github_domain():
    with pytest.raises(InvalidUrlError) as info:
        repo_from_url("https://gitlab.com/foo/bar")
    assert info.value.value == "https://gitlab.com/foo/bar"


def test_from_str_missing_slash():
    with pytest.raises(InvalidFormatError) as info:
        parse_repo("ownerrepo")
    assert info.value.value == "ownerrepo"


def test_from_str_empty_owner():
    with pytest.raises(EmptyNameError):
        parse_repo("/repo")


def test_from_str_empty_name():
    with pytest.raises(EmptyNameError):
        parse_repo("owner/")


def test_from_str_name_contains_slash():
    with pytest.raises(InvalidFormatError) as info:
        parse_repo("owner/repo/extra")
    assert info.value.value == "Name contains '/'"


def test_from_url_too_few_segments():
    with pytest.raises(InvalidUrlError):
        repo_from_url("https://github.com/owner")


def test_from_url_not_a_url():
    with pytest.raises(InvalidUrlError):
        repo_from_url("owner/repo")


def test_from_url_empty_owner():
    with pytest.raises(EmptyNameError):
        repo_from_url("https://github.com//repo")


def test_url_and_display():
    repo = parse_repo("owner/repo")
    assert repo.url() == "https://github.com/owner/repo"
    assert str(repo) == "owner/repo (https://github.com/owner/repo)"


def test_url_round_trip():
    repo = parse_repo("rust-lang/rust")
    assert repo_from_url(repo.url()) == repo


def test_hashable_and_equal():
    a = parse_repo("owner/repo")
    b = RepoEntity(owner="owner", name="repo", name_with_owner="owner/repo")
    assert a == b
    assert len({a, b}) == 1
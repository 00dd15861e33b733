"""Shared fixtures: fake fetcher, fake clock and repo payload builders."""

from __future__ import annotations

import pytest

from showcase.config import Config
from showcase.errors import UpstreamFetchError
from showcase.models import Profile, Repository


def raw_repo(name: str, **overrides) -> dict:
    """A GitHub ``/users/{owner}/repos`` item with sensible defaults."""
    data = {
        "id": sum(map(ord, name)),
        "name": name,
        "full_name": f"octo/{name}",
        "description": f"{name} description",
        "html_url": f"https://github.com/octo/{name}",
        "homepage": "",
        "language": "Python",
        "stargazers_count": 1,
        "forks_count": 0,
        "topics": [],
        "fork": False,
        "archived": False,
        "created_at": "2024-01-01T00:00:00Z",
        "updated_at": "2024-06-01T00:00:00Z",
        "pushed_at": "2024-06-01T00:00:00Z",
    }
    data.update(overrides)
    return data


def make_repo(name: str, **overrides) -> Repository:
    return Repository.from_github(raw_repo(name, **overrides))


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def __call__(self) -> float:
        return self.now


class FakeFetcher:
    """In-memory stand-in for GitHubClient that counts calls."""

    def __init__(
        self,
        repos: list[Repository] | None = None,
        languages: dict[str, dict[str, int]] | None = None,
        profile: Profile | None = None,
    ) -> None:
        self.repos = repos or []
        self.languages = languages or {}
        self.profile = profile or Profile(login="octo", name="Octo Cat")
        self.readmes: dict[str, str] = {}
        self.list_error: UpstreamFetchError | None = None
        self.profile_error: UpstreamFetchError | None = None
        self.failing_languages: set[str] = set()
        self.calls: list[tuple[str, ...]] = []

    async def list_repositories(self, owner: str) -> list[Repository]:
        self.calls.append(("list", owner))
        if self.list_error is not None:
            raise self.list_error
        return list(self.repos)

    async def get_languages(self, owner: str, repo_name: str) -> dict[str, int]:
        self.calls.append(("languages", owner, repo_name))
        if repo_name in self.failing_languages:
            raise UpstreamFetchError("boom", status=502)
        return dict(self.languages.get(repo_name, {}))

    async def get_profile(self, owner: str) -> Profile:
        self.calls.append(("profile", owner))
        if self.profile_error is not None:
            raise self.profile_error
        return self.profile

    async def get_repository(self, owner: str, repo_name: str) -> Repository:
        self.calls.append(("repo", owner, repo_name))
        for repo in self.repos:
            if repo.name == repo_name:
                return repo
        raise UpstreamFetchError("GitHub API error: 404", status=404)

    async def get_readme(self, owner: str, repo_name: str) -> str | None:
        self.calls.append(("readme", owner, repo_name))
        return self.readmes.get(repo_name)

    def count(self, kind: str) -> int:
        return sum(1 for call in self.calls if call[0] == kind)


@pytest.fixture
def config() -> Config:
    return Config(
        github_username="octo",
        github_token="tok",
        featured_repos=("a", "b", "c"),
        listing_ttl=600,
        detail_ttl=3600,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()

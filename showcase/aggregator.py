from __future__ import annotations

import asyncio
from collections import Counter
from datetime import datetime, timezone
from typing import Protocol

from loguru import logger

from showcase.cache import TTLCache, cache_key
from showcase.config import Config
from showcase.errors import NotFoundError, UpstreamFetchError
from showcase.models import (
    EnrichedRepository,
    GitHubStats,
    LanguageStat,
    Profile,
    Repository,
    RepositoryDetail,
    language_breakdown,
)

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)
_TOP_LANGUAGES = 10
_RECENT_REPOS = 5


class RepositoryFetcher(Protocol):
    async def list_repositories(self, owner: str) -> list[Repository]: ...

    async def get_languages(self, owner: str, repo_name: str) -> dict[str, int]: ...

    async def get_profile(self, owner: str) -> Profile: ...

    async def get_repository(self, owner: str, repo_name: str) -> Repository: ...

    async def get_readme(self, owner: str, repo_name: str) -> str | None: ...


def _by_recency(repo: Repository) -> datetime:
    return repo.updated_at or _OLDEST


class ProjectAggregator:
    """Builds the featured and full project listings shown on the portfolio.

    Listings are cached in ``listing_cache``; per-repo languages, profile and
    repo detail in ``detail_cache``. A failed listing fetch propagates, a
    failed language fetch only empties that repo's breakdown.
    """

    def __init__(
        self,
        fetcher: RepositoryFetcher,
        config: Config,
        listing_cache: TTLCache | None = None,
        detail_cache: TTLCache | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.config = config
        self.listing_cache = (
            listing_cache if listing_cache is not None else TTLCache(config.listing_ttl)
        )
        self.detail_cache = (
            detail_cache if detail_cache is not None else TTLCache(config.detail_ttl)
        )

    # -- public API ---------------------------------------------------------

    async def featured(self, owner: str | None = None) -> list[EnrichedRepository]:
        """Repos on the featured allow-list, in allow-list order, with languages."""
        owner = owner or self.config.github_username
        order = {name: idx for idx, name in enumerate(self.config.featured_repos)}

        repos = await self._repositories(owner)
        selected = sorted(
            (repo for repo in repos if repo.name in order),
            key=lambda repo: order[repo.name],
        )
        missing = set(order) - {repo.name for repo in selected}
        if missing:
            logger.debug("Featured repos not found upstream: {}", sorted(missing))

        breakdowns = await asyncio.gather(
            *(self._languages(owner, repo.name) for repo in selected)
        )
        return [
            EnrichedRepository(repository=repo, languages=langs, featured=True)
            for repo, langs in zip(selected, breakdowns)
        ]

    async def all(
        self,
        owner: str | None = None,
        *,
        category: str | None = None,
        featured: bool | None = None,
        limit: int | None = None,
        with_languages: bool = False,
    ) -> list[EnrichedRepository]:
        """Every non-fork, non-archived repo, most recently updated first.

        ``category`` must equal the primary language or one of the topics.
        ``limit`` is applied last and never grows the result.
        """
        owner = owner or self.config.github_username
        featured_names = set(self.config.featured_repos)

        repos = [
            repo
            for repo in await self._repositories(owner)
            if not repo.fork and not repo.archived
        ]
        repos.sort(key=_by_recency, reverse=True)

        if category is not None:
            repos = [
                repo
                for repo in repos
                if repo.language == category or category in repo.topics
            ]
        if featured is not None:
            repos = [repo for repo in repos if (repo.name in featured_names) == featured]
        if limit is not None:
            repos = repos[: max(limit, 0)]

        if with_languages:
            breakdowns = await asyncio.gather(
                *(self._languages(owner, repo.name) for repo in repos)
            )
        else:
            breakdowns = [[] for _ in repos]

        return [
            EnrichedRepository(
                repository=repo,
                languages=langs,
                featured=repo.name in featured_names,
            )
            for repo, langs in zip(repos, breakdowns)
        ]

    async def profile(self, owner: str | None = None) -> Profile:
        owner = owner or self.config.github_username
        key = cache_key("profile", owner)
        cached = self.detail_cache.get(key)
        if cached is not None:
            return cached

        profile = await self.fetcher.get_profile(owner)
        self.detail_cache.set(key, profile)
        return profile

    async def repository(self, name: str, owner: str | None = None) -> RepositoryDetail:
        """Single repo with its language breakdown and decoded README."""
        owner = owner or self.config.github_username
        key = cache_key("repo", owner, name)
        cached = self.detail_cache.get(key)
        if cached is not None:
            return cached

        try:
            repo = await self.fetcher.get_repository(owner, name)
        except UpstreamFetchError as exc:
            if exc.status == 404:
                raise NotFoundError(f"Repository {owner}/{name} not found") from exc
            raise

        languages = await self._languages(owner, name)
        try:
            readme = await self.fetcher.get_readme(owner, name)
        except UpstreamFetchError as exc:
            logger.warning("README fetch failed for {}/{}: {}", owner, name, exc)
            readme = None

        detail = RepositoryDetail(
            project=EnrichedRepository(
                repository=repo,
                languages=languages,
                featured=repo.name in self.config.featured_repos,
            ),
            readme=readme,
        )
        self.detail_cache.set(key, detail)
        return detail

    async def stats(self, owner: str | None = None) -> GitHubStats:
        owner = owner or self.config.github_username
        repos = await self._repositories(owner)
        own = [repo for repo in repos if not repo.fork]

        language_counts = Counter(repo.language for repo in own if repo.language)
        recent = sorted(
            own, key=lambda repo: repo.pushed_at or repo.updated_at or _OLDEST, reverse=True
        )
        return GitHubStats(
            own_repos=len(own),
            forked_repos=len(repos) - len(own),
            total_stars=sum(repo.stargazers_count for repo in own),
            total_forks=sum(repo.forks_count for repo in own),
            languages=dict(language_counts.most_common(_TOP_LANGUAGES)),
            recent=recent[:_RECENT_REPOS],
        )

    # -- cached fetches -----------------------------------------------------

    async def _repositories(self, owner: str) -> list[Repository]:
        key = cache_key("repos", owner)
        cached = self.listing_cache.get(key)
        if cached is not None:
            return cached

        repos = await self.fetcher.list_repositories(owner)
        self.listing_cache.set(key, repos)
        return repos

    async def _languages(self, owner: str, repo_name: str) -> list[LanguageStat]:
        key = cache_key("languages", owner, repo_name)
        cached = self.detail_cache.get(key)
        if cached is not None:
            return cached

        try:
            byte_map = await self.fetcher.get_languages(owner, repo_name)
        except UpstreamFetchError as exc:
            logger.warning("Language fetch failed for {}/{}: {}", owner, repo_name, exc)
            return []

        breakdown = language_breakdown(byte_map)
        self.detail_cache.set(key, breakdown)
        return breakdown

from __future__ import annotations

import base64
from contextlib import contextmanager
from types import TracebackType
from typing import Any, Iterator

import httpx
from loguru import logger

from showcase.errors import UpstreamFetchError
from showcase.models import Profile, Repository

_USER_AGENT = "showcase-portfolio"


class GitHubClient:
    """Read-only async client for the GitHub REST API.

    No retries: every non-2xx response or transport failure is raised as a
    single :class:`UpstreamFetchError` and the caller decides how to degrade.
    """

    def __init__(
        self,
        token: str = "",
        *,
        base_url: str = "https://api.github.com",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": _USER_AGENT,
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        else:
            logger.warning("No GitHub token configured; using unauthenticated rate limits")
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    # -- context manager ---------------------------------------------------

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    # -- public API ---------------------------------------------------------

    async def list_repositories(self, owner: str) -> list[Repository]:
        """Fetch the owner's public repositories, most recently updated first."""
        url = f"/users/{owner}/repos"
        data = await self._get_json(
            url,
            params={"sort": "updated", "per_page": 100, "type": "owner"},
            expect=list,
        )
        with _parsing(url):
            repos = [Repository.from_github(raw) for raw in data]
        logger.info("Fetched {} repos for {}", len(repos), owner)
        return repos

    async def get_languages(self, owner: str, repo_name: str) -> dict[str, int]:
        """Return the ``{language: bytes}`` map GitHub reports for a repo."""
        url = f"/repos/{owner}/{repo_name}/languages"
        data = await self._get_json(url, expect=dict)
        with _parsing(url):
            return {str(name): int(count) for name, count in data.items()}

    async def get_profile(self, owner: str) -> Profile:
        url = f"/users/{owner}"
        data = await self._get_json(url, expect=dict)
        with _parsing(url):
            return Profile.from_github(data)

    async def get_repository(self, owner: str, repo_name: str) -> Repository:
        url = f"/repos/{owner}/{repo_name}"
        data = await self._get_json(url, expect=dict)
        with _parsing(url):
            return Repository.from_github(data)

    async def get_readme(self, owner: str, repo_name: str) -> str | None:
        """Fetch and decode a repo's README. Returns None when it has none."""
        url = f"/repos/{owner}/{repo_name}/readme"
        try:
            data = await self._get_json(url, expect=dict)
        except UpstreamFetchError as exc:
            if exc.status == 404:
                return None
            raise
        content = data.get("content")
        if not content:
            return None
        with _parsing(url):
            return base64.b64decode(content).decode("utf-8", errors="replace")

    async def aclose(self) -> None:
        await self._client.aclose()

    # -- internals ----------------------------------------------------------

    async def _get_json(self, url: str, params: dict | None = None, *, expect: type) -> Any:
        logger.debug("GET {} {}", url, params or "")
        try:
            resp = await self._client.get(url, params=params)
        except httpx.HTTPError as exc:
            raise UpstreamFetchError(f"GitHub request to {url} failed: {exc}") from exc

        if not resp.is_success:
            raise UpstreamFetchError(
                f"GitHub API error: {resp.status_code} for {url}",
                status=resp.status_code,
            )
        try:
            data = resp.json()
        except ValueError as exc:
            raise UpstreamFetchError(
                f"GitHub returned invalid JSON for {url}", status=resp.status_code
            ) from exc
        if not isinstance(data, expect):
            raise UpstreamFetchError(
                f"GitHub returned a {type(data).__name__} for {url}, "
                f"expected a {expect.__name__}",
                status=resp.status_code,
            )
        return data


@contextmanager
def _parsing(url: str) -> Iterator[None]:
    """Turn malformed fields in a 2xx payload into UpstreamFetchError."""
    try:
        yield
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise UpstreamFetchError(
            f"GitHub returned malformed data for {url}: {exc!r}"
        ) from exc

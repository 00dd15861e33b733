from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def _isoformat(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class Repository:
    """Normalized representation of a GitHub repository."""

    id: int
    name: str
    full_name: str
    html_url: str
    description: str | None = None
    language: str | None = None
    homepage: str | None = None
    stargazers_count: int = 0
    forks_count: int = 0
    topics: tuple[str, ...] = ()
    created_at: datetime | None = None
    updated_at: datetime | None = None
    pushed_at: datetime | None = None
    fork: bool = False
    archived: bool = False

    @classmethod
    def from_github(cls, raw: dict) -> Repository:
        return cls(
            id=raw["id"],
            name=raw["name"],
            full_name=raw.get("full_name") or raw["name"],
            html_url=raw.get("html_url") or "",
            description=raw.get("description") or None,
            language=raw.get("language") or None,
            homepage=raw.get("homepage") or None,
            stargazers_count=raw.get("stargazers_count") or 0,
            forks_count=raw.get("forks_count") or 0,
            topics=tuple(raw.get("topics") or ()),
            created_at=_parse_timestamp(raw.get("created_at")),
            updated_at=_parse_timestamp(raw.get("updated_at")),
            pushed_at=_parse_timestamp(raw.get("pushed_at")),
            fork=bool(raw.get("fork", False)),
            archived=bool(raw.get("archived", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["topics"] = list(self.topics)
        for key in ("created_at", "updated_at", "pushed_at"):
            data[key] = _isoformat(data[key])
        return data


@dataclass(frozen=True)
class LanguageStat:
    name: str
    bytes: int
    percentage: float


def language_breakdown(byte_map: dict[str, int]) -> list[LanguageStat]:
    """Turn a ``{language: bytes}`` map into stats sorted by bytes, largest first.

    Percentages have one decimal place and always sum to exactly 100.0: each
    share is floored to a tenth of a percent, and the leftover tenths go to
    the entries with the largest remainders. An empty map, or one whose byte
    counts sum to zero, gives an empty breakdown.
    """
    total = sum(byte_map.values())
    if total <= 0:
        return []
    ordered = sorted(byte_map.items(), key=lambda item: (-item[1], item[0]))

    shares = [divmod(count * 1000, total) for _, count in ordered]
    tenths = [whole for whole, _ in shares]
    leftover = 1000 - sum(tenths)
    by_remainder = sorted(range(len(shares)), key=lambda idx: (-shares[idx][1], idx))
    for idx in by_remainder[:leftover]:
        tenths[idx] += 1

    return [
        LanguageStat(name=name, bytes=count, percentage=tenth / 10)
        for (name, count), tenth in zip(ordered, tenths)
    ]


@dataclass(frozen=True)
class EnrichedRepository:
    repository: Repository
    languages: list[LanguageStat] = field(default_factory=list)
    featured: bool = False

    @property
    def name(self) -> str:
        return self.repository.name

    def to_dict(self) -> dict[str, Any]:
        data = self.repository.to_dict()
        data["languages"] = [asdict(stat) for stat in self.languages]
        data["featured"] = self.featured
        return data


@dataclass(frozen=True)
class RepositoryDetail:
    project: EnrichedRepository
    readme: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = self.project.to_dict()
        data["readme"] = self.readme
        return data


@dataclass(frozen=True)
class Profile:
    login: str
    name: str | None = None
    bio: str | None = None
    avatar_url: str | None = None
    html_url: str | None = None
    blog: str | None = None
    company: str | None = None
    location: str | None = None
    public_repos: int = 0
    followers: int = 0
    following: int = 0

    @classmethod
    def from_github(cls, raw: dict) -> Profile:
        return cls(
            login=raw["login"],
            name=raw.get("name") or None,
            bio=raw.get("bio") or None,
            avatar_url=raw.get("avatar_url") or None,
            html_url=raw.get("html_url") or None,
            blog=raw.get("blog") or None,
            company=raw.get("company") or None,
            location=raw.get("location") or None,
            public_repos=raw.get("public_repos") or 0,
            followers=raw.get("followers") or 0,
            following=raw.get("following") or 0,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class GitHubStats:
    """Totals over the owner's non-fork repositories."""

    own_repos: int
    forked_repos: int
    total_stars: int
    total_forks: int
    languages: dict[str, int]
    recent: list[Repository]

    def to_dict(self) -> dict[str, Any]:
        return {
            "repositories": {"own": self.own_repos, "forked": self.forked_repos},
            "activity": {
                "total_stars": self.total_stars,
                "total_forks": self.total_forks,
            },
            "languages": dict(self.languages),
            "recent_activity": [
                {
                    "name": repo.name,
                    "description": repo.description,
                    "language": repo.language,
                    "updated_at": _isoformat(repo.pushed_at or repo.updated_at),
                    "stars": repo.stargazers_count,
                }
                for repo in self.recent
            ],
        }

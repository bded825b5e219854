from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass(slots=True)
class License:
    key: Optional[str] = None
    name: Optional[str] = None
    spdx_id: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Optional[Dict[str, Any]]) -> Optional["License"]:
        if not payload:
            return None
        return cls(key=payload.get("key"), name=payload.get("name"), spdx_id=payload.get("spdx_id"))

    @property
    def label(self) -> str:
        return self.spdx_id or self.name or "No License"


@dataclass(slots=True)
class Profile:
    login: str
    id: Optional[int] = None
    name: Optional[str] = None
    avatar_url: str = ""
    html_url: str = ""
    public_repos: Optional[int] = 0
    public_gists: Optional[int] = 0
    followers: Optional[int] = 0
    following: Optional[int] = 0
    bio: Optional[str] = None
    company: Optional[str] = None
    location: Optional[str] = None
    blog: Optional[str] = None
    twitter_username: Optional[str] = None
    email: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "Profile":
        return cls(
            login=str(payload.get("login", "")),
            id=payload.get("id"),
            name=payload.get("name"),
            avatar_url=payload.get("avatar_url") or "",
            html_url=payload.get("html_url") or "",
            public_repos=payload.get("public_repos"),
            public_gists=payload.get("public_gists"),
            followers=payload.get("followers"),
            following=payload.get("following"),
            bio=payload.get("bio"),
            company=payload.get("company"),
            location=payload.get("location"),
            blog=payload.get("blog"),
            twitter_username=payload.get("twitter_username"),
            email=payload.get("email"),
            created_at=payload.get("created_at"),
            updated_at=payload.get("updated_at"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class Repository:
    name: str
    id: Optional[int] = None
    full_name: str = ""
    html_url: str = ""
    description: Optional[str] = None
    fork: bool = False
    language: Optional[str] = None
    stargazers_count: Optional[int] = 0
    watchers_count: Optional[int] = 0
    forks_count: Optional[int] = 0
    open_issues_count: Optional[int] = 0
    license: Optional[License] = None
    topics: List[str] = field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    pushed_at: Optional[str] = None
    size: Optional[int] = 0
    default_branch: str = "main"

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "Repository":
        return cls(
            name=str(payload.get("name", "")),
            id=payload.get("id"),
            full_name=payload.get("full_name") or "",
            html_url=payload.get("html_url") or "",
            description=payload.get("description"),
            fork=bool(payload.get("fork", False)),
            language=payload.get("language"),
            stargazers_count=payload.get("stargazers_count"),
            watchers_count=payload.get("watchers_count"),
            forks_count=payload.get("forks_count"),
            open_issues_count=payload.get("open_issues_count"),
            license=License.from_payload(payload.get("license")),
            topics=list(payload.get("topics") or []),
            created_at=payload.get("created_at"),
            updated_at=payload.get("updated_at"),
            pushed_at=payload.get("pushed_at"),
            size=payload.get("size"),
            default_branch=str(payload.get("default_branch") or "main"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class Insights:
    total_repos: int = 0
    total_stars: int = 0
    total_forks: int = 0
    languages: Dict[str, int] = field(default_factory=dict)
    licenses: Dict[str, int] = field(default_factory=dict)
    most_starred: Optional[Repository] = None
    most_active: Optional[Repository] = None
    repos_by_year: Dict[int, int] = field(default_factory=dict)
    active_last_year: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class ScoreBreakdown:
    followers_score: int
    repos_score: int
    stars_score: int
    recent_score: int


@dataclass(slots=True)
class ProductivityScore:
    score: int
    level: str
    breakdown: ScoreBreakdown

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class ContributionDay:
    date: str
    count: int
    color: str
    level: int


@dataclass(slots=True)
class ProfileData:
    """Everything fetched for one handle, fully materialized."""

    profile: Profile
    repos: List[Repository] = field(default_factory=list)
    contributions: List[ContributionDay] = field(default_factory=list)
    fetched_at: Optional[datetime] = None


@dataclass(slots=True)
class ComparedProfile:
    profile: Profile
    insights: Insights
    score: ProductivityScore


@dataclass(slots=True)
class MetricRow:
    label: str
    value_a: float
    value_b: float
    winner: Optional[str]
    percent_a: float

    @property
    def percent_b(self) -> float:
        return 100 - self.percent_a


@dataclass(slots=True)
class Comparison:
    side_a: ComparedProfile
    side_b: ComparedProfile
    rows: List[MetricRow] = field(default_factory=list)


@dataclass(slots=True)
class SavedProfile:
    """A bookmark or a search history entry."""

    login: str
    avatar_url: str = ""
    name: Optional[str] = None
    saved_at: str = ""

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "SavedProfile":
        return cls(
            login=str(raw.get("login", "")),
            avatar_url=str(raw.get("avatar_url") or ""),
            name=raw.get("name"),
            saved_at=str(raw.get("saved_at") or ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

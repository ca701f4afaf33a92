"""
Unified data models for GitHub events and the analytics derived from them.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import List, Optional, Dict, Any

# day index convention: 0 = Sunday ... 6 = Saturday
DAY_NAMES = ['Sunday', 'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday']


@dataclass(frozen=True)
class RawEvent:
    """
    Event as delivered by the GitHub events feed. Never mutated.
    """
    id: str
    type: Optional[str]
    actor: Dict[str, Any]
    repo: Dict[str, Any]
    payload: Dict[str, Any]
    created_at: Optional[str]

    @classmethod
    def from_api(cls, raw: Dict[str, Any]) -> 'RawEvent':
        return cls(
            id=str(raw.get('id') or ''),
            type=raw.get('type') or None,
            actor=raw.get('actor') or {},
            repo=raw.get('repo') or {},
            payload=raw.get('payload') or {},
            created_at=raw.get('created_at') or None,
        )


@dataclass(frozen=True)
class Event:
    """
    Normalized event: guaranteed type and a UTC-aware timestamp.
    """
    id: str
    type: str
    timestamp: datetime
    repo_id: Any = None
    repo_name: str = ''
    payload: Dict[str, Any] = field(default_factory=dict)

    @property
    def day(self) -> int:
        # datetime.weekday() is Monday-based
        return (self.timestamp.weekday() + 1) % 7

    @property
    def hour(self) -> int:
        return self.timestamp.hour

    @property
    def action(self) -> Optional[str]:
        return self.payload.get('action')


@dataclass
class ActivityWindow:
    """Contribution counts for one trailing time window."""
    commits: int = 0
    pull_requests: int = 0
    issues: int = 0
    comments: int = 0
    repositories: int = 0
    contributions: int = 0
    timestamp: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'commits': self.commits,
            'pullRequests': self.pull_requests,
            'issues': self.issues,
            'comments': self.comments,
            'repositories': self.repositories,
            'contributions': self.contributions,
            'timestamp': self.timestamp,
        }


@dataclass
class HeatmapCell:
    day: int
    hour: int
    intensity: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ActivityTrends:
    daily_average: float = 0.0
    weekly_growth: float = 0.0
    most_active_day: str = DAY_NAMES[0]
    most_active_time: str = '0:00'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'dailyAverage': self.daily_average,
            'weeklyGrowth': self.weekly_growth,
            'mostActiveDay': self.most_active_day,
            'mostActiveTime': self.most_active_time,
        }


@dataclass
class CodeQualityMetrics:
    average_commit_size: float = 0.0
    pr_review_participation: int = 0
    issue_resolution_rate: float = 0.0
    code_review_thoroughness: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'averageCommitSize': self.average_commit_size,
            'prReviewParticipation': self.pr_review_participation,
            'issueResolutionRate': self.issue_resolution_rate,
            'codeReviewThoroughness': self.code_review_thoroughness,
        }


@dataclass
class EngagementMetrics:
    issue_discussion_count: int = 0
    pr_review_count: int = 0
    average_comments_per_issue: float = 0.0
    average_comments_per_pr: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'issueDiscussionCount': self.issue_discussion_count,
            'prReviewCount': self.pr_review_count,
            'averageCommentsPerIssue': self.average_comments_per_issue,
            'averageCommentsPerPR': self.average_comments_per_pr,
        }


@dataclass(frozen=True)
class ArchetypeConditions:
    """Optional thresholds a profile is scored against; None means unset."""
    min_commits: Optional[int] = None
    min_prs: Optional[int] = None
    min_issues: Optional[int] = None
    activity_pattern: Optional[str] = None
    consistency: Optional[str] = None


@dataclass(frozen=True)
class ArchetypeProfile:
    name: str
    traits: tuple
    color: str
    emoji: str
    conditions: ArchetypeConditions = field(default_factory=ArchetypeConditions)


@dataclass
class ArchetypeMatch:
    name: str
    score: int
    traits: List[str]
    color: str
    emoji: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'score': self.score,
            'traits': list(self.traits),
            'color': self.color,
            'emoji': self.emoji,
        }


@dataclass
class SpiritAnalysis:
    """Classifier output for one user."""
    animals: List[ArchetypeMatch] = field(default_factory=list)
    dominant_traits: List[str] = field(default_factory=list)
    activity_pattern: str = 'diurnal'
    consistency: str = 'low'

    @classmethod
    def default(cls) -> 'SpiritAnalysis':
        return cls()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'animals': [a.to_dict() for a in self.animals],
            'dominantTraits': list(self.dominant_traits),
            'activityPattern': self.activity_pattern,
            'consistency': self.consistency,
        }


@dataclass
class ActivityReport:
    current: Dict[str, ActivityWindow]
    heatmap: List[HeatmapCell]
    trends: ActivityTrends
    code_quality: CodeQualityMetrics
    engagement: EngagementMetrics

    def to_dict(self) -> Dict[str, Any]:
        return {
            'current': {name: w.to_dict() for name, w in self.current.items()},
            'heatmap': [c.to_dict() for c in self.heatmap],
            'trends': self.trends.to_dict(),
            'codeQuality': self.code_quality.to_dict(),
            'engagement': self.engagement.to_dict(),
        }


@dataclass
class TimelinePoint:
    date: str
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SocialTimeline:
    followers: List[TimelinePoint] = field(default_factory=list)
    following: List[TimelinePoint] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'followers': [p.to_dict() for p in self.followers],
            'following': [p.to_dict() for p in self.following],
        }


@dataclass
class UserProfileData:
    """
    Simplified profile returned by the profile section.
    """
    login: str
    name: str = ''
    avatar_url: str = ''
    bio: str = ''
    blog: str = ''
    twitter_username: str = ''
    followers: int = 0
    following: int = 0
    created_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

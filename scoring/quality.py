"""
Code quality and engagement proxies derived from event payload shape.

These are approximations, not ground truth: the GitHub events feed only returns
the most recent ~100 events per user, so the ratios below are representative
for low-activity accounts only. Which subtypes show up (reviews, comments,
closes) depends entirely on what that window happens to contain.
"""
from typing import List

from normalize.models import Event, CodeQualityMetrics, EngagementMetrics


def _of_type(events: List[Event], event_type: str) -> List[Event]:
    return [e for e in events if e.type == event_type]


def _ratio(numerator: int, denominator: int) -> float:
    return numerator / denominator if denominator else 0.0


def average_commit_size(pushes: List[Event]) -> float:
    """Mean over pushes of the summed commit message lengths (diff size is not in the feed)."""
    sizes = []
    for push in pushes:
        commits = push.payload.get('commits') or []
        if not commits:
            continue
        sizes.append(sum(len((c or {}).get('message') or '') for c in commits))
    return sum(sizes) / len(sizes) if sizes else 0.0


def pr_participation(prs: List[Event]) -> int:
    return sum(1 for pr in prs if pr.action in ('opened', 'reviewed'))


def issue_resolution_rate(events: List[Event]) -> float:
    issues = _of_type(events, 'IssuesEvent')
    closed = sum(1 for i in issues if i.action == 'closed')
    return _ratio(closed, len(issues)) * 100


def review_thoroughness(prs: List[Event]) -> float:
    reviewed = sum(1 for pr in prs if pr.action == 'reviewed')
    return _ratio(reviewed, len(prs)) * 100


def calculate_code_quality(events: List[Event]) -> CodeQualityMetrics:
    pushes = _of_type(events, 'PushEvent')
    prs = _of_type(events, 'PullRequestEvent')
    return CodeQualityMetrics(
        average_commit_size=average_commit_size(pushes),
        pr_review_participation=pr_participation(prs),
        issue_resolution_rate=issue_resolution_rate(events),
        code_review_thoroughness=review_thoroughness(prs),
    )


def calculate_engagement(events: List[Event]) -> EngagementMetrics:
    issue_comments = len(_of_type(events, 'IssueCommentEvent'))
    pr_comments = len(_of_type(events, 'PullRequestCommentEvent'))
    return EngagementMetrics(
        issue_discussion_count=issue_comments,
        pr_review_count=len(_of_type(events, 'PullRequestReviewEvent')),
        average_comments_per_issue=_ratio(issue_comments, len(_of_type(events, 'IssuesEvent'))),
        average_comments_per_pr=_ratio(pr_comments, len(_of_type(events, 'PullRequestEvent'))),
    )

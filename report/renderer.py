"""
Report renderer: turn a section result (profile, activity, social, spirit or the dashboard)
into plain text, Markdown, HTML or JSON. Markdown and HTML use the Jinja2 templates in
report/templates/.
"""

import json
import os
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

SECTIONS = ('profile', 'activity', 'social', 'spirit', 'dashboard')
DASHBOARD_SECTIONS = ('profile', 'spirit', 'social', 'activity')
WINDOW_ORDER = ('daily', 'weekly', 'monthly', 'yearly')
FORMATS = ('text', 'md', 'html', 'json')
TEMPLATES = {'md': 'section.md.j2', 'html': 'report.html.j2'}


@lru_cache(maxsize=1)
def _environment() -> Environment:
    tmpl_dir = os.path.join(os.path.dirname(__file__), 'templates')
    return Environment(
        loader=FileSystemLoader(tmpl_dir),
        autoescape=select_autoescape(['html', 'xml', 'html.j2']),
        trim_blocks=True,
        lstrip_blocks=True,
    )


def _as_dict(data: Any) -> Dict[str, Any]:
    """Accept either a model with to_dict() or its already-serialized dict."""
    if hasattr(data, 'to_dict'):
        return data.to_dict()
    return dict(data or {})


def _windows(current: Dict[str, Any]) -> List[tuple]:
    ordered = [(name, current[name]) for name in WINDOW_ORDER if name in current]
    return ordered + [(name, w) for name, w in current.items() if name not in WINDOW_ORDER]


def _timeline_change(points: List[Dict[str, Any]]) -> int:
    if not points:
        return 0
    return points[-1]['count'] - points[0]['count']


# --- plain text ---

def _profile_lines(p: Dict[str, Any]) -> List[str]:
    lines = [f"Profile: {p.get('login', '')}" + (f" ({p['name']})" if p.get('name') else '')]
    if p.get('bio'):
        lines.append(f"  {p['bio']}")
    lines.append(f"  Followers: {p.get('followers', 0)}  Following: {p.get('following', 0)}")
    if p.get('created_at'):
        lines.append(f"  Member since: {p['created_at']}")
    return lines


def _activity_lines(a: Dict[str, Any]) -> List[str]:
    lines = ["Activity:"]
    for name, w in _windows(a.get('current', {})):
        lines.append(
            f"  {name:<8} commits={w['commits']} prs={w['pullRequests']} issues={w['issues']} "
            f"comments={w['comments']} repos={w['repositories']} total={w['contributions']}"
        )
    t = a.get('trends', {})
    if t:
        lines.append(
            f"  Daily average: {t['dailyAverage']:.2f}  Weekly growth: {t['weeklyGrowth']:.1f}%  "
            f"Most active: {t['mostActiveDay']} at {t['mostActiveTime']}"
        )
    lines.append(f"  Heatmap cells: {len(a.get('heatmap', []))}")
    q = a.get('codeQuality', {})
    if q:
        lines.append(
            f"  Avg commit size: {q['averageCommitSize']:.2f}  PR participation: {q['prReviewParticipation']}  "
            f"Issue resolution: {q['issueResolutionRate']:.1f}%  Review thoroughness: {q['codeReviewThoroughness']:.2f}"
        )
    e = a.get('engagement', {})
    if e:
        lines.append(
            f"  Issue discussions: {e['issueDiscussionCount']}  PR reviews: {e['prReviewCount']}  "
            f"Comments/issue: {e['averageCommentsPerIssue']:.2f}  Comments/PR: {e['averageCommentsPerPR']:.2f}"
        )
    return lines


def _social_lines(s: Dict[str, Any]) -> List[str]:
    lines = ["Social (last 30 days):"]
    for name in ('followers', 'following'):
        points = s.get(name, [])
        latest = points[-1]['count'] if points else 0
        lines.append(f"  {name.capitalize()}: {latest} ({_timeline_change(points):+d})")
    return lines


def _spirit_lines(s: Dict[str, Any]) -> List[str]:
    lines = [f"Spirit analysis: {s.get('activityPattern', 'diurnal')}, {s.get('consistency', 'low')} consistency"]
    for a in s.get('animals', []):
        lines.append(f"  {a['emoji']} {a['name']:<8} {a['score']:>3}%  {', '.join(a['traits'])}")
    if s.get('dominantTraits'):
        lines.append(f"  Dominant traits: {', '.join(s['dominantTraits'])}")
    return lines


_TEXT_SECTIONS = {
    'profile': _profile_lines,
    'activity': _activity_lines,
    'social': _social_lines,
    'spirit': _spirit_lines,
}


def render_text(section: str, data: Dict[str, Any]) -> str:
    """Render a plain-text summary of one section (or all of them for the dashboard)."""
    if section == 'dashboard':
        blocks = ["\n".join(_TEXT_SECTIONS[name](data.get(name) or {})) for name in DASHBOARD_SECTIONS]
        return "\n\n".join(blocks)
    return "\n".join(_TEXT_SECTIONS[section](data))


def _template_context(section: str, data: Dict[str, Any], username: str, generated_at: Optional[str]) -> Dict[str, Any]:
    if section == 'dashboard':
        sections = {name: data.get(name) or {} for name in DASHBOARD_SECTIONS}
    else:
        sections = {section: data}
    return {
        'section': section,
        'sections': sections,
        'order': [name for name in DASHBOARD_SECTIONS if name in sections],
        'username': username,
        'generated_at': generated_at or datetime.now(timezone.utc).isoformat(),
        'windows': _windows,
        'timeline_change': _timeline_change,
    }


def render_markdown(section: str, data: Dict[str, Any], username: str = '', generated_at: Optional[str] = None) -> str:
    tmpl = _environment().get_template(TEMPLATES['md'])
    return tmpl.render(**_template_context(section, data, username, generated_at)).lstrip()


def render_html(section: str, data: Dict[str, Any], username: str = '', generated_at: Optional[str] = None) -> str:
    tmpl = _environment().get_template(TEMPLATES['html'])
    return tmpl.render(**_template_context(section, data, username, generated_at))


def render_json(data: Dict[str, Any]) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


def render(
    section: str,
    data: Any,
    fmt: str = 'text',
    username: str = '',
    generated_at: Optional[str] = None,
) -> str:
    """Main render function.

    data is the section result, either the model object or its to_dict() form; for the
    dashboard it is the {profile, spirit, social, activity} mapping.
    """
    if section not in SECTIONS:
        raise ValueError(f"Unknown section: {section}")
    payload = _as_dict(data)
    fmt_l = (fmt or 'text').lower()
    if fmt_l in ('md', 'markdown'):
        return render_markdown(section, payload, username, generated_at)
    if fmt_l in ('html', 'htm'):
        return render_html(section, payload, username, generated_at)
    if fmt_l == 'json':
        return render_json(payload)
    if fmt_l == 'text':
        return render_text(section, payload)
    raise ValueError(f"Unknown output format: {fmt}")

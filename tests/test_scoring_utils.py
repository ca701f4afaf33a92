import unittest

import pytest

from normalize.models import ArchetypeConditions
from scoring.utils import load_profiles, parse_profiles, default_profiles_path


class TestScoringUtils(unittest.TestCase):
    def test_load_bundled_profiles(self):
        profiles = load_profiles()
        names = [p.name for p in profiles]
        self.assertEqual(names, ['Wolf', 'Cat', 'Beaver', 'Owl'])
        wolf = profiles[0]
        self.assertEqual(wolf.conditions, ArchetypeConditions(min_prs=5, activity_pattern='nocturnal', consistency='high'))
        self.assertEqual(wolf.color, '#4A4A4A')
        self.assertIn('collaborative', wolf.traits)

    def test_parse_bare_list(self):
        profiles = parse_profiles([
            {'name': 'Fox', 'traits': ['quick'], 'color': '#f00', 'emoji': 'fox',
             'conditions': {'min_commits': 1}},
        ])
        self.assertEqual(len(profiles), 1)
        self.assertEqual(profiles[0].conditions.min_commits, 1)
        self.assertIsNone(profiles[0].conditions.activity_pattern)

    def test_invalid_pattern_rejected(self):
        with self.assertRaises(ValueError):
            parse_profiles({'profiles': [{'name': 'Bat', 'conditions': {'activity_pattern': 'midnight'}}]})

    def test_unknown_condition_rejected(self):
        with self.assertRaises(ValueError):
            parse_profiles({'profiles': [{'name': 'Bat', 'conditions': {'min_stars': 3}}]})


def test_missing_table_raises(tmp_path):
    with pytest.raises(ValueError):
        load_profiles(str(tmp_path / 'nope.yaml'))


def test_load_custom_table(tmp_path):
    path = tmp_path / 'animals.yaml'
    path.write_text(
        "profiles:\n"
        "  - name: Hawk\n"
        "    traits: [focused]\n"
        "    color: '#000'\n"
        "    emoji: hawk\n"
        "    conditions:\n"
        "      min_issues: 1\n"
        "      consistency: low\n",
        encoding='utf-8',
    )
    profiles = load_profiles(str(path))
    assert [p.name for p in profiles] == ['Hawk']
    assert profiles[0].conditions.consistency == 'low'


def test_env_override_for_table_path(monkeypatch, tmp_path):
    target = str(tmp_path / 'x.yaml')
    monkeypatch.setenv('SPIRIT_ARCHETYPES', target)
    assert default_profiles_path() == target


if __name__ == '__main__':
    unittest.main()

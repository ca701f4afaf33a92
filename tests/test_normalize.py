import unittest
from datetime import datetime, timezone

from normalize.models import RawEvent, DAY_NAMES
from normalize.util import parse_timestamp, normalize_event, normalize_events, normalize_profile


class TestParseTimestamp(unittest.TestCase):
    def test_trailing_z_is_utc(self):
        ts = parse_timestamp('2024-03-10T23:30:00Z')
        self.assertEqual(ts, datetime(2024, 3, 10, 23, 30, tzinfo=timezone.utc))

    def test_offset_is_converted_to_utc(self):
        ts = parse_timestamp('2024-03-10T20:30:00-05:00')
        self.assertEqual(ts.tzinfo, timezone.utc)
        self.assertEqual(ts.hour, 1)
        self.assertEqual(ts.day, 11)

    def test_naive_value_assumed_utc(self):
        ts = parse_timestamp('2024-03-10T08:00:00')
        self.assertEqual(ts.tzinfo, timezone.utc)
        self.assertEqual(ts.hour, 8)

    def test_garbage_returns_none(self):
        self.assertIsNone(parse_timestamp('yesterday'))
        self.assertIsNone(parse_timestamp(''))
        self.assertIsNone(parse_timestamp(None))


class TestNormalizeEvents(unittest.TestCase):
    def test_drops_events_without_type_or_created_at(self):
        raw = [
            {'id': '1', 'type': 'PushEvent', 'created_at': '2024-03-10T10:00:00Z', 'repo': {'id': 7, 'name': 'o/r'}},
            {'id': '2', 'type': None, 'created_at': '2024-03-10T10:00:00Z'},
            {'id': '3', 'type': 'IssuesEvent', 'created_at': None},
            {'id': '4', 'type': 'IssuesEvent', 'created_at': 'not a date'},
        ]
        events = normalize_events(raw)
        self.assertEqual([e.id for e in events], ['1'])
        self.assertEqual(events[0].repo_id, 7)
        self.assertEqual(events[0].repo_name, 'o/r')

    def test_order_is_preserved(self):
        raw = [
            {'id': 'b', 'type': 'PushEvent', 'created_at': '2024-03-01T10:00:00Z'},
            {'id': 'a', 'type': 'PushEvent', 'created_at': '2024-03-09T10:00:00Z'},
        ]
        self.assertEqual([e.id for e in normalize_events(raw)], ['b', 'a'])

    def test_accepts_raw_event_instances(self):
        raw = RawEvent.from_api({'id': 9, 'type': 'IssuesEvent', 'created_at': '2024-03-10T10:00:00Z',
                                 'payload': {'action': 'closed'}})
        ev = normalize_event(raw)
        self.assertEqual(ev.id, '9')
        self.assertEqual(ev.action, 'closed')

    def test_day_is_sunday_based_utc(self):
        # 2024-03-10 is a Sunday; 23:30 in UTC-5 is already Monday in UTC
        sunday = normalize_event({'id': '1', 'type': 'PushEvent', 'created_at': '2024-03-10T12:00:00Z'})
        self.assertEqual(sunday.day, 0)
        self.assertEqual(DAY_NAMES[sunday.day], 'Sunday')
        shifted = normalize_event({'id': '2', 'type': 'PushEvent', 'created_at': '2024-03-10T23:30:00-05:00'})
        self.assertEqual(shifted.day, 1)
        self.assertEqual(shifted.hour, 4)

    def test_empty_input(self):
        self.assertEqual(normalize_events([]), [])
        self.assertEqual(normalize_events(None), [])


class TestNormalizeProfile(unittest.TestCase):
    def test_defaults_for_missing_fields(self):
        p = normalize_profile({'login': 'octo'})
        self.assertEqual(p.login, 'octo')
        self.assertEqual(p.name, 'octo')
        self.assertEqual(p.bio, '')
        self.assertEqual(p.followers, 0)
        self.assertEqual(p.following, 0)

    def test_to_dict_keeps_counts(self):
        p = normalize_profile({'login': 'octo', 'name': 'Octo Cat', 'followers': 12, 'following': 3})
        d = p.to_dict()
        self.assertEqual(d['name'], 'Octo Cat')
        self.assertEqual(d['followers'], 12)
        self.assertEqual(d['following'], 3)


if __name__ == '__main__':
    unittest.main()

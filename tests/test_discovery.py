import json
import unittest
from datetime import date, datetime, timezone
from unittest.mock import patch, MagicMock
import os
import sys
import time

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import requests

from escale_events.config import DEFAULT_DISCOVERY_QUERY
from escale_events.models.event import DiscoveryResult, GroundingSource
from escale_events.services.backends import BackendReply, DiscoveryError, SearchWindow
from escale_events.services.discovery import (
    EVENT_SCHEMA,
    DiscoveryGateway,
    build_discovery_prompt,
    build_search_window,
    map_grounding_sources,
    parse_discovery_reply,
)


def make_record(**overrides):
    record = {
        "id": "evt-1",
        "title": "Erasmus Welcome Party",
        "category": "Party",
        "date": "Friday at 11 PM",
        "isoDate": "2024-01-05T23:00:00+01:00",
        "location": "Le Wanderlust, 75013 Paris",
        "description": "Open bar until midnight [1].",
        "vibe": "Techno Vibe",
        "isAccessible": True,
        "accessibilityReason": "English-speaking crowd [2]",
    }
    record.update(overrides)
    return record


class TestParseDiscoveryReply(unittest.TestCase):

    def test_strict_json(self):
        events = parse_discovery_reply(json.dumps({"events": [make_record()]}))
        self.assertEqual(len(events), 1)
        self.assertEqual(events[0].id, "evt-1")
        self.assertEqual(events[0].iso_date, "2024-01-05T23:00:00+01:00")
        self.assertTrue(events[0].is_accessible)

    def test_citation_markers_are_cleaned(self):
        event = parse_discovery_reply(json.dumps({"events": [make_record()]}))[0]
        self.assertEqual(event.description, "Open bar until midnight.")
        self.assertEqual(event.accessibility_reason, "English-speaking crowd")

    def test_extraction_fallback_from_prose(self):
        text = "Here you go:\n" + json.dumps({"events": [make_record()]}) + "\nEnjoy!"
        events = parse_discovery_reply(text)
        self.assertEqual([event.id for event in events], ["evt-1"])

    def test_no_json_yields_empty_list(self):
        self.assertEqual(parse_discovery_reply("Sorry, I can't help with that."), [])

    def test_missing_events_key_yields_empty_list(self):
        self.assertEqual(parse_discovery_reply('{"items": []}'), [])

    def test_invalid_records_are_skipped(self):
        payload = {"events": [make_record(), make_record(id="evt-2", title=""), "nonsense"]}
        events = parse_discovery_reply(json.dumps(payload))
        self.assertEqual([event.id for event in events], ["evt-1"])

    def test_duplicate_ids_are_tolerated(self):
        payload = {"events": [make_record(), make_record(title="Second")]}
        events = parse_discovery_reply(json.dumps(payload))
        self.assertEqual([event.title for event in events], ["Erasmus Welcome Party", "Second"])


class TestGroundingSources(unittest.TestCase):

    def test_filters_unusable_links_and_defaults_title(self):
        citations = [
            {"title": "Paris Je T'aime", "url": "https://parisjetaime.com/agenda"},
            {"title": "No link", "url": None},
            {"title": "Placeholder", "url": "#"},
            {"title": None, "url": "https://www.sortiraparis.com/"},
            {"title": "Again", "url": "https://parisjetaime.com/agenda"},
        ]
        self.assertEqual(
            map_grounding_sources(citations),
            [
                GroundingSource(title="Paris Je T'aime", uri="https://parisjetaime.com/agenda"),
                GroundingSource(title="View Source", uri="https://www.sortiraparis.com/"),
            ],
        )

    def test_non_string_fields_are_ignored(self):
        citations = [
            {"title": 5, "url": "https://a.b"},
            {"title": "Numeric link", "url": 42},
            {"title": "Fallback uri", "url": None, "uri": "https://c.d"},
            "https://not-a-dict.example",
        ]
        self.assertEqual(
            map_grounding_sources(citations),
            [
                GroundingSource(title="View Source", uri="https://a.b"),
                GroundingSource(title="Fallback uri", uri="https://c.d"),
            ],
        )


class TestPromptConstruction(unittest.TestCase):

    def test_window_ends_with_following_month(self):
        window = build_search_window(datetime(2024, 1, 20, 15, tzinfo=timezone.utc))
        self.assertEqual(window, SearchWindow(start=date(2024, 1, 20), end=date(2024, 2, 29)))

    def test_window_crosses_year_boundary(self):
        window = build_search_window(datetime(2024, 12, 3, tzinfo=timezone.utc))
        self.assertEqual(window.end, date(2025, 1, 31))

    def test_prompt_mentions_dates_scope_and_policy(self):
        window = SearchWindow(start=date(2024, 1, 20), end=date(2024, 2, 29))
        prompt = build_discovery_prompt("jazz", window)
        self.assertIn("Today is 2024-01-20", prompt)
        self.assertIn("2024-02-29", prompt)
        self.assertIn("matching: jazz", prompt)
        self.assertIn("Mainstream and international", prompt)
        self.assertIn("Niche and local", prompt)
        self.assertIn("Translate", prompt)
        self.assertIn("accessibilityReason", prompt)


class TestDiscoveryGateway(unittest.TestCase):

    def setUp(self):
        self.backend = MagicMock()
        self.gateway = DiscoveryGateway(backend=self.backend)
        self.now = datetime(2024, 1, 1, 12, tzinfo=timezone.utc)

    def test_discover_success(self):
        self.backend.generate_structured_content.return_value = BackendReply(
            text=json.dumps({"events": [make_record()]}),
            citations=[{"title": "Source", "url": "https://example.com/a"}],
        )

        result = self.gateway.discover("rooftop party", now=self.now)

        self.assertEqual([event.id for event in result.events], ["evt-1"])
        self.assertEqual(result.sources, (GroundingSource("Source", "https://example.com/a"),))
        prompt, schema, window = self.backend.generate_structured_content.call_args.args
        self.assertIn("rooftop party", prompt)
        self.assertIs(schema, EVENT_SCHEMA)
        self.assertEqual(window.end, date(2024, 2, 29))

    def test_empty_query_uses_default(self):
        self.backend.generate_structured_content.return_value = BackendReply(text='{"events": []}')

        self.gateway.discover("   ", now=self.now)

        prompt = self.backend.generate_structured_content.call_args.args[0]
        self.assertIn(DEFAULT_DISCOVERY_QUERY, prompt)

    def test_unparseable_reply_degrades_to_empty(self):
        self.backend.generate_structured_content.return_value = BackendReply(
            text="Sorry, I can't help with that.",
            citations=[{"title": "Source", "url": "https://example.com/a"}],
        )
        result = self.gateway.discover("anything", now=self.now)
        self.assertEqual(result, DiscoveryResult.empty())
        self.assertEqual(result.events, ())
        self.assertEqual(result.sources, ())

    def test_prose_wrapped_reply_is_recovered(self):
        self.backend.generate_structured_content.return_value = BackendReply(
            text="Here you go:\n" + json.dumps({"events": [make_record()]}) + "\nEnjoy!"
        )
        result = self.gateway.discover("anything", now=self.now)
        self.assertEqual(len(result.events), 1)

    def test_malformed_citation_keeps_events(self):
        self.backend.generate_structured_content.return_value = BackendReply(
            text=json.dumps({"events": [make_record()]}),
            citations=[{"title": 5, "url": "https://a.b"}, {"title": "x", "url": 7}],
        )
        result = self.gateway.discover("anything", now=self.now)
        self.assertEqual([event.id for event in result.events], ["evt-1"])
        self.assertEqual(result.sources, (GroundingSource("View Source", "https://a.b"),))

    def test_deeply_nested_reply_degrades_to_empty(self):
        self.backend.generate_structured_content.return_value = BackendReply(
            text="[" * 100000 + "]" * 100000
        )
        self.assertEqual(self.gateway.discover("anything", now=self.now), DiscoveryResult.empty())

    def test_unclosed_braces_reply_returns_quickly(self):
        self.backend.generate_structured_content.return_value = BackendReply(text="{" * 20000)
        started = time.monotonic()
        result = self.gateway.discover("anything", now=self.now)
        self.assertLess(time.monotonic() - started, 2.0)
        self.assertEqual(result, DiscoveryResult.empty())

    def test_network_failure_degrades_to_empty(self):
        self.backend.generate_structured_content.side_effect = requests.Timeout("timed out")
        self.assertEqual(self.gateway.discover("anything", now=self.now), DiscoveryResult.empty())

    def test_backend_error_degrades_to_empty(self):
        self.backend.generate_structured_content.side_effect = DiscoveryError("401")
        self.assertEqual(self.gateway.discover("anything", now=self.now), DiscoveryResult.empty())

    @patch('escale_events.services.discovery.get_backend')
    def test_missing_credentials_degrade_to_empty(self, mock_get_backend):
        mock_get_backend.side_effect = EnvironmentError("PERPLEXITY_API_KEY is not set")
        self.assertEqual(DiscoveryGateway().discover("anything"), DiscoveryResult.empty())


if __name__ == '__main__':
    unittest.main()

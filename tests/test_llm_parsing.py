import unittest
import os
import sys
import time

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from escale_events.utils.llm_parsing import extract_structured_json, iter_balanced_json
from escale_events.utils.text_cleaning import sanitize_llm_text, strip_think_blocks


class TestExtractStructuredJson(unittest.TestCase):

    def test_plain_object(self):
        result = extract_structured_json('{"events": [{"id": "a"}]}')
        self.assertEqual(result, {"events": [{"id": "a"}]})

    def test_bare_array_is_wrapped(self):
        result = extract_structured_json('[{"id": "a"}, {"id": "b"}]')
        self.assertEqual(result, {"events": [{"id": "a"}, {"id": "b"}]})

    def test_fenced_block_inside_prose(self):
        text = """
        Here's the result:
        ```json
        {"events": [{"id": "a"}]}
        ```
        Have fun!
        """
        self.assertEqual(extract_structured_json(text), {"events": [{"id": "a"}]})

    def test_think_block_is_ignored(self):
        text = '<think>maybe {"events": []} ?</think>\n{"events": [{"id": "x"}]}'
        self.assertEqual(extract_structured_json(text), {"events": [{"id": "x"}]})

    def test_object_embedded_in_prose(self):
        text = 'Here you go:\n{"events": [{"id": "a", "title": "Soirée {Erasmus}"}]}\nEnjoy!'
        result = extract_structured_json(text)
        self.assertEqual(result["events"][0]["title"], "Soirée {Erasmus}")

    def test_citation_marker_before_payload_is_skipped(self):
        text = 'According to [1], these are on: {"events": [{"id": "a"}]}'
        self.assertEqual(extract_structured_json(text), {"events": [{"id": "a"}]})

    def test_no_json_raises(self):
        with self.assertRaises(ValueError):
            extract_structured_json("Sorry, I can't help with that.")

    def test_empty_raises(self):
        with self.assertRaises(ValueError):
            extract_structured_json("")

    def test_truncated_payload_falls_back_to_inner_object(self):
        # The outer object never closes, the first balanced snippet is the record.
        result = extract_structured_json('Partial: {"events": [{"id": "a"}')
        self.assertEqual(result, {"id": "a"})

    def test_deeply_nested_input_raises_value_error(self):
        with self.assertRaises(ValueError):
            extract_structured_json("[" * 100000 + "]" * 100000)


class TestIterBalancedJson(unittest.TestCase):

    def test_yields_top_level_snippets_in_order(self):
        text = 'a [1] b {"k": [2, 3]} c'
        self.assertEqual(list(iter_balanced_json(text)), ["[1]", '{"k": [2, 3]}'])

    def test_brackets_in_strings_are_ignored(self):
        text = '{"a": "}]", "b": "\\"{"}'
        self.assertEqual(list(iter_balanced_json(text)), [text])

    def test_mismatched_closer_is_skipped(self):
        self.assertEqual(list(iter_balanced_json("{ ] }")), [])

    def test_unclosed_openers_scan_quickly(self):
        started = time.monotonic()
        self.assertEqual(list(iter_balanced_json("{" * 20000)), [])
        self.assertLess(time.monotonic() - started, 2.0)

    def test_prose_quote_does_not_hide_later_payload(self):
        text = 'He said "hi\n{"events": []}'
        self.assertEqual(list(iter_balanced_json(text)), ['{"events": []}'])


class TestTextCleaning(unittest.TestCase):

    def test_strip_think_blocks_removes_fence(self):
        self.assertEqual(strip_think_blocks('<think>x</think>```json\n{"a": 1}\n```'), '{"a": 1}')

    def test_strip_think_blocks_without_marker(self):
        self.assertEqual(strip_think_blocks("  plain  "), "plain")

    def test_sanitize_removes_numeric_citations(self):
        self.assertEqual(
            sanitize_llm_text("Free entry before midnight [1][2, 3]. Dress code [4] applies."),
            "Free entry before midnight. Dress code applies.",
        )

    def test_sanitize_handles_none(self):
        self.assertEqual(sanitize_llm_text(None), "")


if __name__ == '__main__':
    unittest.main()

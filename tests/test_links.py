import re
import unittest

from thread_relay.links import generate_chat_id, parse_thread_link
from thread_relay.models import ThreadReference


class ParseThreadLinkTests(unittest.TestCase):
    def test_full_permalink(self) -> None:
        ref = parse_thread_link("https://acme.slack.com/archives/C12345/p1234567890123456")
        self.assertEqual(ThreadReference(channel_id="C12345", thread_ts="1234567890.123456"), ref)

    def test_shorthand_segment(self) -> None:
        ref = parse_thread_link("C12345/p1234567890123456")
        self.assertEqual("C12345", ref.channel_id)
        self.assertEqual("1234567890.123456", ref.thread_ts)

    def test_timestamp_has_ten_digit_seconds_and_one_dot(self) -> None:
        ref = parse_thread_link("https://x.slack.com/archives/C1/p1111111111000001")
        self.assertEqual(1, ref.thread_ts.count("."))
        seconds, fraction = ref.thread_ts.split(".")
        self.assertEqual("1111111111", seconds)
        self.assertEqual("000001", fraction)

    def test_message_id_without_prefix_is_used_verbatim(self) -> None:
        ref = parse_thread_link("C999/1700000000.000200")
        self.assertEqual("1700000000.000200", ref.thread_ts)

    def test_no_separator_returns_none(self) -> None:
        self.assertIsNone(parse_thread_link("mychat"))

    def test_archives_without_message_returns_none(self) -> None:
        self.assertIsNone(parse_thread_link("https://acme.slack.com/archives/C12345"))

    def test_empty_and_none_return_none(self) -> None:
        self.assertIsNone(parse_thread_link(""))
        self.assertIsNone(parse_thread_link(None))

    def test_slack_angle_bracket_link(self) -> None:
        ref = parse_thread_link("<https://acme.slack.com/archives/C12345/p1234567890123456|thread>")
        self.assertEqual(ThreadReference(channel_id="C12345", thread_ts="1234567890.123456"), ref)

    def test_query_string_is_dropped(self) -> None:
        ref = parse_thread_link(
            "https://acme.slack.com/archives/C12345/p1234567890123456?thread_ts=1234567890.000100&cid=C12345"
        )
        self.assertEqual("1234567890.123456", ref.thread_ts)


class GenerateChatIdTests(unittest.TestCase):
    def test_eight_hex_chars(self) -> None:
        self.assertRegex(generate_chat_id(), re.compile(r"^[0-9a-f]{8}$"))

    def test_ids_differ(self) -> None:
        self.assertNotEqual(generate_chat_id(), generate_chat_id())

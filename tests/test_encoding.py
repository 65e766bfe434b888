from __future__ import annotations

import unittest

from relay42pixel.config.models import PixelConfig
from relay42pixel.encoding import (
    MAX_PROPERTIES,
    cachebuster,
    encode_engagement,
    encode_fact,
    encode_mapping,
    encode_query,
    tracking_path,
)
from relay42pixel.errors import InvalidRequest
from relay42pixel.events import Engagement, Fact, Mapping
from relay42pixel.runtime_logging import configure_runtime_logging


def keys(items: list[tuple[str, str]]) -> list[str]:
    return [key for key, _ in items]


class CachebusterTests(unittest.TestCase):
    def test_formats_milliseconds(self) -> None:
        self.assertEqual(cachebuster(lambda: 1700000000.1234), "1700000000123")

    def test_real_clock_is_numeric_and_non_decreasing(self) -> None:
        first = cachebuster()
        second = cachebuster()
        self.assertTrue(first.isdigit())
        self.assertGreaterEqual(int(second), int(first))


class EngagementEncodingTests(unittest.TestCase):
    def setUp(self) -> None:
        configure_runtime_logging(level="off")

    def test_required_params_in_order(self) -> None:
        items = encode_engagement(Engagement("u1", "ProductView", {"productId": "1630"}), "42")
        self.assertEqual(
            items,
            [
                ("i", "u1"),
                ("e", "true"),
                ("et", "ProductView"),
                ("cb", "42"),
                ("cup", "productId:1630"),
            ],
        )

    def test_no_properties_emits_no_cup(self) -> None:
        items = encode_engagement(Engagement("u1", "PageView"), "42")
        self.assertEqual(keys(items), ["i", "e", "et", "cb"])

    def test_properties_capped_at_32(self) -> None:
        properties = {f"k{n}": str(n) for n in range(40)}
        items = encode_engagement(Engagement("u1", "PageView", properties), "42")

        cups = [value for key, value in items if key == "cup"]
        self.assertEqual(len(cups), MAX_PROPERTIES)
        self.assertEqual(cups[0], "k0:0")
        self.assertEqual(cups[-1], "k31:31")
        self.assertNotIn("k32:32", cups)
        for key in ("i", "e", "et", "cb"):
            self.assertEqual(keys(items).count(key), 1)


class FactEncodingTests(unittest.TestCase):
    def setUp(self) -> None:
        configure_runtime_logging(level="off")

    def test_required_params_in_order(self) -> None:
        items = encode_fact(Fact("u1", "Loyalty", 3600, {"tier": "gold"}), "42")
        self.assertEqual(
            items,
            [
                ("i", "u1"),
                ("f", "true"),
                ("ft", "Loyalty"),
                ("fttl", "3600"),
                ("cb", "42"),
                ("cup", "tier:gold"),
            ],
        )

    def test_ttl_is_not_validated(self) -> None:
        for ttl in (0, -5):
            items = dict(encode_fact(Fact("u1", "Loyalty", ttl), "42"))
            self.assertEqual(items["fttl"], str(ttl))

    def test_properties_capped_at_32(self) -> None:
        properties = {f"k{n}": "v" for n in range(33)}
        items = encode_fact(Fact("u1", "Loyalty", 10, properties), "42")
        self.assertEqual(keys(items).count("cup"), 32)


class MappingEncodingTests(unittest.TestCase):
    def test_explicit_partner_in_order(self) -> None:
        config = PixelConfig(site_id="1232", default_partner_id="9999")
        items = encode_mapping(Mapping("u2", "123456789", partner_id="2001"), config, "42")
        self.assertEqual(
            items,
            [
                ("ca_site", "1232"),
                ("ca_partner", "2001"),
                ("ca_cookie", "u2"),
                ("pid", "123456789"),
                ("cb", "42"),
                ("ca_merge", "1"),
            ],
        )

    def test_falls_back_to_default_partner(self) -> None:
        config = PixelConfig(site_id="1232", default_partner_id="9999")
        items = dict(encode_mapping(Mapping("u2", "p"), config, "42"))
        self.assertEqual(items["ca_partner"], "9999")

    def test_merge_flag(self) -> None:
        config = PixelConfig(site_id="1232", default_partner_id="9999")
        self.assertEqual(dict(encode_mapping(Mapping("u2", "p"), config, "42"))["ca_merge"], "1")
        self.assertEqual(
            dict(encode_mapping(Mapping("u2", "p", merge=False), config, "42"))["ca_merge"],
            "0",
        )

    def test_missing_partner_raises_invalid_request(self) -> None:
        config = PixelConfig(site_id="1232")
        with self.assertRaises(InvalidRequest):
            encode_mapping(Mapping("u2", "p"), config, "42")


class QueryEncodingTests(unittest.TestCase):
    def test_escapes_reserved_characters(self) -> None:
        query = encode_query([("cup", "productId:1630"), ("et", "a b&c=d/é")])
        self.assertEqual(query, "cup=productId%3A1630&et=a%20b%26c%3Dd%2F%C3%A9")

    def test_leaves_unreserved_characters(self) -> None:
        self.assertEqual(encode_query([("i", "Ab-9._~")]), "i=Ab-9._~")

    def test_tracking_path(self) -> None:
        self.assertEqual(tracking_path(PixelConfig(site_id="1232")), "/t-1232")


if __name__ == "__main__":
    unittest.main()

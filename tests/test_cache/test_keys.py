"""Tests for cache key derivation."""

from __future__ import annotations

from hatx.cache.keys import EMPTY_PAYLOAD, canonicalize, make_cache_key, serialize_payload
from hatx.models import BeadFilterQuery, Manufacturer, SerotypeQuery


# ------------------------------------------------------------------ #
# Determinism
# ------------------------------------------------------------------ #


class TestDeterminism:
    def test_field_order_does_not_matter(self) -> None:
        key1 = make_cache_key("bead:filter", payload={"allele": "A*01:01", "version": 2})
        key2 = make_cache_key("bead:filter", payload={"version": 2, "allele": "A*01:01"})
        assert key1 == key2

    def test_nested_mapping_order_does_not_matter(self) -> None:
        key1 = make_cache_key("q", payload={"outer": {"b": 1, "a": [{"y": 2, "x": 1}]}})
        key2 = make_cache_key("q", payload={"outer": {"a": [{"x": 1, "y": 2}], "b": 1}})
        assert key1 == key2

    def test_different_values_give_different_keys(self) -> None:
        key1 = make_cache_key("bead:filter", payload={"allele": "A*01:01"})
        key2 = make_cache_key("bead:filter", payload={"allele": "A*01:02"})
        assert key1 != key2

    def test_sequence_order_matters(self) -> None:
        key1 = make_cache_key("bead:query", payload={"alleles": ["A*01:01", "B*08:01"]})
        key2 = make_cache_key("bead:query", payload={"alleles": ["B*08:01", "A*01:01"]})
        assert key1 != key2

    def test_value_types_are_distinguished(self) -> None:
        assert make_cache_key("q", payload={"v": 2}) != make_cache_key("q", payload={"v": "2"})
        assert make_cache_key("q", payload={"v": True}) != make_cache_key("q", payload={"v": 1})


# ------------------------------------------------------------------ #
# Absent values
# ------------------------------------------------------------------ #


class TestAbsentValues:
    def test_none_field_collapses_with_omitted_field(self) -> None:
        key1 = make_cache_key("serotype:filter", payload={"allele": "A*01:01", "version": None})
        key2 = make_cache_key("serotype:filter", payload={"allele": "A*01:01"})
        assert key1 == key2

    def test_falsy_values_are_kept(self) -> None:
        assert canonicalize({"n": 0, "flag": False, "text": ""}) == {
            "flag": False,
            "n": 0,
            "text": "",
        }

    def test_none_inside_sequence_is_kept(self) -> None:
        assert canonicalize([1, None, {"a": None}]) == [1, None, {}]

    def test_absent_payload_uses_sentinel(self) -> None:
        assert serialize_payload(None) == EMPTY_PAYLOAD
        assert make_cache_key("system:health") == f"system:health|{EMPTY_PAYLOAD}"

    def test_empty_payload_uses_sentinel(self) -> None:
        assert serialize_payload({}) == EMPTY_PAYLOAD
        assert serialize_payload({"allele": None}) == EMPTY_PAYLOAD

    def test_zero_input_operations_stay_distinct(self) -> None:
        assert make_cache_key("system:health") != make_cache_key("system:info")


# ------------------------------------------------------------------ #
# Discriminators and models
# ------------------------------------------------------------------ #


class TestParts:
    def test_point_lookup_and_query_never_collide(self) -> None:
        point = make_cache_key("bead:get", "A*01:01")
        bulk = make_cache_key("bead:query", payload={"alleles": ["A*01:01"]})
        assert point != bulk

    def test_parts_are_discriminating(self) -> None:
        latest = make_cache_key("serotype:get", "A*01:01", "latest")
        v2 = make_cache_key("serotype:get", "A*01:01", 2)
        assert latest != v2
        assert v2 == "serotype:get|A*01:01|2|~"

    def test_none_part_keeps_its_position(self) -> None:
        assert make_cache_key("op", None, "x") == "op|-|x|~"

    def test_enum_part_uses_value(self) -> None:
        assert make_cache_key("op", Manufacturer.IMMUCOR) == "op|IMMUCOR|~"

    def test_model_payload_matches_its_wire_dict(self) -> None:
        model = BeadFilterQuery(allele="A*01:01", manufacturer=Manufacturer.ONE_LAMBDA)
        as_dict = {"manufacturer": "ONE_LAMBDA", "allele": "A*01:01"}
        assert make_cache_key("bead:filter", payload=model) == make_cache_key(
            "bead:filter", payload=as_dict
        )

    def test_serialization_is_compact_json(self) -> None:
        payload = SerotypeQuery(alleles=["A*01:01"], version=2)
        assert serialize_payload(payload) == '{"alleles":["A*01:01"],"version":2}'

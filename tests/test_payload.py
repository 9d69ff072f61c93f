"""Tests for the subscriber payload mapper."""

import copy

import pytest

from formsync.integrations.payload import (
    SUBSCRIBER_FIELDS,
    build_subscriber_payload,
    partition_fields,
)


def subscriber(payload):
    assert list(payload) == ["subscribers"]
    assert len(payload["subscribers"]) == 1
    return payload["subscribers"][0]


class TestPartitionFields:
    """Tests for partition_fields."""

    def test_splits_known_and_remaining(self):
        extracted, remainder = partition_fields({"a": 1, "b": 2, "c": 3}, ["a", "z"])
        assert extracted == {"a": 1, "z": ""}
        assert remainder == {"b": 2, "c": 3}

    def test_does_not_mutate_input(self):
        values = {"a": 1, "b": 2}
        partition_fields(values, ["a"])
        assert values == {"a": 1, "b": 2}

    def test_none_becomes_empty_string(self):
        extracted, remainder = partition_fields({"a": None}, ["a"])
        assert extracted == {"a": ""}
        assert remainder == {}

    def test_falsy_values_preserved(self):
        """Only None is replaced; 0 and False are real values."""
        extracted, _ = partition_fields({"a": 0, "b": False}, ["a", "b"])
        assert extracted == {"a": 0, "b": False}


class TestBuildSubscriberPayload:
    """Tests for build_subscriber_payload."""

    def test_full_mapping(self):
        values = {
            "email": "jo@example.com",
            "first_name": "Jo",
            "last_name": "Bloggs",
            "address1": "1 Main St",
            "address2": "Apt 2",
            "city": "Springfield",
            "state": "IL",
            "zip": "62701",
            "country": "US",
            "phone": "555-0100",
            "loyalty_tier": "gold",
        }

        result = subscriber(build_subscriber_payload(values))

        for handle in SUBSCRIBER_FIELDS:
            assert result[handle] == values[handle]
        assert result["custom_fields"] == {"loyalty_tier": "gold"}

    @pytest.mark.parametrize(
        "values",
        [
            {},
            {"email": "jo@example.com"},
            {"email": None, "phone": None},
            {"first_name": "Jo", "zip": None, "extra": None},
        ],
    )
    def test_known_fields_always_present(self, values):
        """Every known field is the supplied value or "", never None."""
        result = subscriber(build_subscriber_payload(values))

        for handle in SUBSCRIBER_FIELDS:
            assert handle in result
            assert result[handle] is not None
            supplied = values.get(handle)
            assert result[handle] == ("" if supplied is None else supplied)

    def test_only_unknown_handles(self):
        """Unknown handles all land in custom_fields; known ones are empty."""
        values = {"loyalty_tier": "gold", "source": "landing-page"}

        result = subscriber(build_subscriber_payload(values))

        assert all(result[handle] == "" for handle in SUBSCRIBER_FIELDS)
        assert result["custom_fields"] == values

    def test_custom_fields_unchanged(self):
        """Custom values keep their type, including None."""
        values = {"email": "a@b.c", "score": 7, "tags": ["x", "y"], "note": None}

        result = subscriber(build_subscriber_payload(values))

        assert result["custom_fields"] == {"score": 7, "tags": ["x", "y"], "note": None}

    def test_empty_email_passes_through(self):
        """No email validation at this layer."""
        result = subscriber(build_subscriber_payload({"email": ""}))
        assert result["email"] == ""

    def test_caller_mapping_not_mutated(self):
        values = {"email": "a@b.c", "first_name": "A", "loyalty_tier": "gold"}
        snapshot = copy.deepcopy(values)

        build_subscriber_payload(values)

        assert values == snapshot

    def test_idempotent(self):
        values = {"email": "a@b.c", "city": None, "loyalty_tier": "gold"}
        assert build_subscriber_payload(values) == build_subscriber_payload(values)

    def test_fresh_payload_each_call(self):
        values = {"email": "a@b.c", "loyalty_tier": "gold"}
        first = build_subscriber_payload(values)
        second = build_subscriber_payload(values)

        first["subscribers"][0]["custom_fields"]["loyalty_tier"] = "silver"

        assert second["subscribers"][0]["custom_fields"]["loyalty_tier"] == "gold"

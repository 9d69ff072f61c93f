"""Tests for submission models and field mapping."""

from formsync.integrations import Submission, get_field_mapping_values
from formsync.integrations.field_mapping import render_mapped_value


def make_submission(**values) -> Submission:
    return Submission(id="sub-1", form_handle="contact", values=values)


class TestSubmission:
    """Tests for Submission.get_field_value."""

    def test_top_level(self):
        assert make_submission(email="a@b.c").get_field_value("email") == "a@b.c"

    def test_dotted_path(self):
        submission = make_submission(address={"city": "Paris", "zip": "75001"})
        assert submission.get_field_value("address.city") == "Paris"

    def test_missing(self):
        submission = make_submission(address={"city": "Paris"})
        assert submission.get_field_value("phone") is None
        assert submission.get_field_value("address.country") is None
        assert submission.get_field_value("address.city.name") is None


class TestRenderMappedValue:
    """Tests for render_mapped_value."""

    def test_single_token_keeps_type(self):
        submission = make_submission(age=42, tags=["a", "b"])
        assert render_mapped_value("{age}", submission) == 42
        assert render_mapped_value(" {tags} ", submission) == ["a", "b"]

    def test_single_token_missing_is_none(self):
        assert render_mapped_value("{nope}", make_submission()) is None

    def test_mixed_template_renders_text(self):
        submission = make_submission(first="Jo", last="Bloggs", tags=["a", "b"])
        assert render_mapped_value("{first} {last}", submission) == "Jo Bloggs"
        assert render_mapped_value("Tags: {tags}", submission) == "Tags: a, b"

    def test_mixed_template_missing_renders_empty(self):
        assert render_mapped_value("{first} {last}", make_submission(first="Jo")) == "Jo "

    def test_literal(self):
        assert render_mapped_value("website", make_submission()) == "website"


class TestGetFieldMappingValues:
    """Tests for get_field_mapping_values."""

    def test_maps_fields(self):
        submission = make_submission(
            your_email="jo@example.com",
            name={"first": "Jo", "last": "Bloggs"},
            tier="gold",
        )
        mapping = {
            "email": "{your_email}",
            "first_name": "{name.first}",
            "last_name": "{name.last}",
            "loyalty_tier": "{tier}",
        }

        assert get_field_mapping_values(submission, mapping) == {
            "email": "jo@example.com",
            "first_name": "Jo",
            "last_name": "Bloggs",
            "loyalty_tier": "gold",
        }

    def test_skips_unmapped(self):
        submission = make_submission(email="a@b.c")
        mapping = {"email": "{email}", "phone": "", "city": None}
        assert get_field_mapping_values(submission, mapping) == {"email": "a@b.c"}

    def test_missing_submission_value_is_none(self):
        assert get_field_mapping_values(make_submission(), {"phone": "{phone}"}) == {
            "phone": None
        }

    def test_no_mapping(self):
        assert get_field_mapping_values(make_submission(email="a@b.c"), None) == {}

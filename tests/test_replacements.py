"""
Tests for replacements.py module.

Tests cover:
- Remove / Mask / Constant / Transform strategies
- DecimalDesignation prefix stripping
- OrganizationCodeRemoval masking and the extracted code registry
- Composite dispatch on match type
"""

import pytest
from docscrub.matches import Match
from docscrub.replacements import (
    CompositeReplacementStrategy,
    ConstantReplacementStrategy,
    DecimalDesignationReplacementStrategy,
    MaskReplacementStrategy,
    OrganizationCodeRemovalStrategy,
    RemoveReplacementStrategy,
    TransformReplacementStrategy,
    extract_code,
    is_designation,
)


def _m(value, match_type=""):
    return Match(value=value, start=0, length=len(value), match_type=match_type)


class TestSimpleStrategies:
    def test_remove(self):
        assert RemoveReplacementStrategy().replace(_m("secret")) == ""

    def test_mask(self):
        assert MaskReplacementStrategy().replace(_m("secret")) == "******"

    def test_mask_custom_char(self):
        assert MaskReplacementStrategy("#").replace(_m("abc")) == "###"

    def test_mask_rejects_multi_char(self):
        with pytest.raises(ValueError):
            MaskReplacementStrategy("##")

    def test_constant(self):
        s = ConstantReplacementStrategy("Redacted", "[REDACTED]")
        assert s.replace(_m("anything")) == "[REDACTED]"
        assert s.name == "Redacted"

    def test_constant_none_is_empty(self):
        assert ConstantReplacementStrategy("Blank", None).replace(_m("x")) == ""

    def test_transform(self):
        s = TransformReplacementStrategy("Upper", lambda m: m.value.upper())
        assert s.replace(_m("abc")) == "ABC"

    def test_transform_requires_callable(self):
        with pytest.raises(TypeError):
            TransformReplacementStrategy("Bad", "not callable")

    def test_empty_name_rejected(self):
        with pytest.raises(ValueError):
            ConstantReplacementStrategy("", "x")


class TestDecimalDesignation:
    """Test prefix stripping."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("ABC.123", "123"),
            ("ABC.01.02.003", "01.02.003"),
            ("NODOT", "NODOT"),
            (".123", ".123"),
            ("ABC.", "ABC."),
        ],
    )
    def test_strip(self, value, expected):
        assert DecimalDesignationReplacementStrategy().replace(_m(value)) == expected


class TestExtractCode:
    def test_extract(self):
        assert extract_code("ABC.01.02.003") == "ABC"

    def test_no_dot(self):
        assert extract_code("ABC") is None

    def test_leading_dot(self):
        assert extract_code(".ABC") is None

    def test_empty(self):
        assert extract_code("") is None
        assert extract_code(None) is None


class TestOrganizationCodeRemoval:
    """Test masking and the code registry."""

    def test_masks_and_collects(self):
        s = OrganizationCodeRemovalStrategy()
        assert s.replace(_m("ABC.01.02.003")) == "***.01.02.003"
        assert s.get_extracted_codes() == frozenset({"ABC"})

    def test_registry_is_a_set(self):
        s = OrganizationCodeRemovalStrategy()
        s.replace(_m("ABC.01.02.003"))
        s.replace(_m("ABC.04.05.006"))
        s.replace(_m("DEF.01.02.003"))
        assert s.get_extracted_codes() == frozenset({"ABC", "DEF"})

    def test_unsplittable_value_unchanged(self):
        s = OrganizationCodeRemovalStrategy()
        assert s.replace(_m("NODOT")) == "NODOT"
        assert s.replace(_m("ABC.")) == "ABC."
        assert s.get_extracted_codes() == frozenset()

    def test_clear(self):
        s = OrganizationCodeRemovalStrategy()
        s.replace(_m("ABC.01.02.003"))
        s.clear_extracted_codes()
        assert s.get_extracted_codes() == frozenset()

    def test_snapshot_is_immutable(self):
        s = OrganizationCodeRemovalStrategy()
        s.replace(_m("ABC.01.02.003"))
        snapshot = s.get_extracted_codes()
        s.replace(_m("DEF.01.02.003"))
        assert snapshot == frozenset({"ABC"})


class TestComposite:
    """Test dispatch between two strategies."""

    def test_routes_designations(self):
        extraction = OrganizationCodeRemovalStrategy()
        composite = CompositeReplacementStrategy(
            "DesignationOrRemove", is_designation, extraction, RemoveReplacementStrategy()
        )
        assert composite.replace(_m("ABC.01.02.003", "FullDesignation")) == "***.01.02.003"
        assert composite.replace(_m("Иванов И.И.", "SurnameFirst")) == ""
        assert extraction.get_extracted_codes() == frozenset({"ABC"})

    def test_requires_branches(self):
        with pytest.raises(TypeError):
            CompositeReplacementStrategy("Bad", is_designation, None, RemoveReplacementStrategy())

    def test_requires_callable_condition(self):
        with pytest.raises(TypeError):
            CompositeReplacementStrategy("Bad", True, RemoveReplacementStrategy(), RemoveReplacementStrategy())

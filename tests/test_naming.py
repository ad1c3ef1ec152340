"""Tests for topology/naming.py.

Tests for service, virtual node and discovery name derivation.
"""

import pytest
from colormesh.core.errors import InvalidVariantError, ValidationError
from colormesh.topology.naming import (
    MAX_LABEL_LENGTH,
    node_name_for,
    resolve,
    validate_variant,
)


class TestResolveDefaultVariant:
    """Tests for the variant at position 0."""

    def test_canonical_service_name(self):
        names = resolve("blue", 0)
        assert names.service_name == "colorteller"

    def test_hostname_is_service_name(self):
        names = resolve("blue", 0)
        assert names.hostname == names.service_name

    def test_node_name(self):
        assert resolve("blue", 0).node_name == "blue-vn"

    def test_log_stream_prefix_keeps_variant(self):
        assert resolve("blue", 0).log_stream_prefix == "colorteller-blue"


class TestResolveOtherVariants:
    """Tests for variants after the default."""

    @pytest.mark.parametrize("index", [1, 2, 7])
    def test_suffixed_service_name(self, index):
        assert resolve("green", index).service_name == "colorteller-green"

    def test_hostname_is_node_name(self):
        names = resolve("red", 2)
        assert names.hostname == "red-vn"
        assert names.hostname == names.node_name

    def test_same_variant_differs_by_position(self):
        """A variant's service name depends only on whether it is first."""
        assert resolve("blue", 0).service_name != resolve("blue", 1).service_name
        assert resolve("blue", 1) == resolve("blue", 5)


class TestValidateVariant:
    """Tests for variant identifier validation."""

    def test_empty_rejected(self):
        with pytest.raises(InvalidVariantError) as exc_info:
            validate_variant("")
        assert exc_info.value.variant == ""

    @pytest.mark.parametrize("bad", ["Blue", "blue green", "-blue", "blue-", "blue_1", "blue.1"])
    def test_non_dns_labels_rejected(self, bad):
        with pytest.raises(InvalidVariantError):
            validate_variant(bad)

    def test_derived_names_too_long(self):
        variant = "a" * (MAX_LABEL_LENGTH - len("colorteller-") + 1)
        with pytest.raises(InvalidVariantError) as exc_info:
            validate_variant(variant)
        assert "exceed" in exc_info.value.message

    def test_longest_accepted(self):
        validate_variant("a" * (MAX_LABEL_LENGTH - len("colorteller-")))

    def test_is_validation_error(self):
        with pytest.raises(ValidationError):
            resolve("", 0)

    def test_negative_index_rejected(self):
        with pytest.raises(InvalidVariantError):
            resolve("blue", -1)


def test_node_name_for():
    assert node_name_for("purple") == "purple-vn"

"""Unit tests for tooldeps/domain/changes.py - declared vs cached comparison."""

from tooldeps.domain.changes import have_dependencies_changed


class TestHaveDependenciesChanged:
    def test_identical_sets_unchanged(self) -> None:
        deps = {"lint": "1.0.0", "fmt": "2.1.0"}
        assert have_dependencies_changed(deps, dict(deps)) is False

    def test_empty_sets_unchanged(self) -> None:
        assert have_dependencies_changed({}, {}) is False

    def test_value_change_detected(self) -> None:
        assert have_dependencies_changed({"lint": "2.0.0"}, {"lint": "1.0.0"}) is True

    def test_added_key_detected(self) -> None:
        declared = {"lint": "1.0.0", "fmt": "1.0.0"}
        assert have_dependencies_changed(declared, {"lint": "1.0.0"}) is True

    def test_removed_key_detected_by_size(self) -> None:
        """A pure removal only shows up as a size mismatch."""
        cached = {"lint": "1.0.0", "fmt": "1.0.0"}
        assert have_dependencies_changed({"lint": "1.0.0"}, cached) is True

    def test_renamed_key_detected(self) -> None:
        assert have_dependencies_changed({"fmt": "1.0.0"}, {"lint": "1.0.0"}) is True

    def test_key_order_ignored(self) -> None:
        declared = {"a": "1", "b": "2", "c": "3"}
        cached = {"c": "3", "a": "1", "b": "2"}
        assert have_dependencies_changed(declared, cached) is False

    def test_cosmetic_constraint_change_is_a_change(self) -> None:
        """Constraints are compared as strings, not as version ranges."""
        assert have_dependencies_changed({"lint": "^1.0.0"}, {"lint": "1.0.0"}) is True

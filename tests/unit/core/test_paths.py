"""Tests for dotted-path helpers."""

from __future__ import annotations

from dnd_progression.core.paths import delete_path, diff_data, expand, flatten, get_path, has_path, set_path


class TestPaths:
    """Tests for reading and writing nested data."""

    def test_get_path(self) -> None:
        data = {"system": {"abilities": {"str": {"value": 15}}}}

        assert get_path(data, "system.abilities.str.value") == 15
        assert get_path(data, "system.abilities.dex.value", 10) == 10
        assert has_path(data, "system.abilities")
        assert not has_path(data, "system.skills")

    def test_set_path_creates_parents(self) -> None:
        data: dict = {"system": {"abilities": 3}}

        set_path(data, "system.abilities.str.value", 16)

        assert data == {"system": {"abilities": {"str": {"value": 16}}}}

    def test_delete_path(self) -> None:
        data = {"a": {"b": 1}}

        assert delete_path(data, "a.b")
        assert not delete_path(data, "a.c.d")
        assert data == {"a": {}}

    def test_flatten_and_expand(self) -> None:
        data = {"a": {"b": 1, "c": {}}, "d": [1, 2]}

        flat = flatten(data)

        assert flat == {"a.b": 1, "a.c": {}, "d": [1, 2]}
        assert expand(flat) == data


class TestDiffData:
    """Tests for computing update paths."""

    def test_changed_leaves(self) -> None:
        before = {"hp": {"value": 10, "max": 10}, "name": "A"}
        after = {"hp": {"value": 12, "max": 10}, "name": "A"}

        assert diff_data(before, after, "system") == {"system.hp.value": 12}

    def test_added_keys(self) -> None:
        assert diff_data({"a": 1}, {"a": 1, "b": 2}, "root") == {"root.b": 2}

    def test_removed_keys_replace_mapping(self) -> None:
        assert diff_data({"a": 1, "b": 2}, {"a": 1}, "root") == {"root": {"a": 1}}

    def test_lists_are_leaves(self) -> None:
        assert diff_data({"a": [1]}, {"a": [1, 2]}, "root") == {"root.a": [1, 2]}

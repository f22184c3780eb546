"""
Tests for version grouping and canonical choice (pyenv_uv/reconcile.py).
"""

import os
import random

import pytest

from pyenv_uv.collectors import InstallationRecord
from pyenv_uv.links import LinkManager
from pyenv_uv.overrides import OverrideStore
from pyenv_uv.reconcile import (
    AliasResolution,
    group_records,
    match_override,
    resolve_aliases,
    resolve_group,
    resolve_override_target,
    strip_prefix,
)
from pyenv_uv.errors import OverrideUnresolvable


def rec(version, installation_id, root="/uv"):
    return InstallationRecord(version, f"{root}/{installation_id[3:]}", installation_id)


@pytest.fixture
def links(layout):
    return LinkManager(layout.versions_dir, layout.managed_root)


@pytest.fixture
def store(layout):
    return OverrideStore(layout.overrides_file)


class TestGroupRecords:
    """Tests for group_records."""

    def test_groups_and_sorts_by_id(self):
        records = [
            rec("3.12.2", "uv-cpython-3.12.2-b"),
            rec("3.13.0", "uv-cpython-3.13.0"),
            rec("3.12.2", "uv-cpython-3.12.2-a"),
        ]
        groups = group_records(records)
        assert list(groups) == ["3.12.2", "3.13.0"]
        assert [r.installation_id for r in groups["3.12.2"]] == [
            "uv-cpython-3.12.2-a", "uv-cpython-3.12.2-b",
        ]

    def test_independent_of_input_order(self):
        records = [rec("3.12.2", f"uv-cpython-3.12.2-{c}") for c in "dbeac"]
        expected = group_records(sorted(records, key=lambda r: r.installation_id))
        for seed in range(5):
            shuffled = list(records)
            random.Random(seed).shuffle(shuffled)
            assert group_records(shuffled) == expected

    def test_lexicographic_not_numeric(self):
        """Ids compare as strings: '10' sorts before '9'."""
        records = [rec("3.12.2", "uv-build-9"), rec("3.12.2", "uv-build-10")]
        assert group_records(records)["3.12.2"][0].installation_id == "uv-build-10"

    def test_empty(self):
        assert group_records([]) == {}


class TestStripPrefix:
    def test_strip_prefix(self):
        assert strip_prefix("uv-cpython-3.12.2-a", "uv-") == "cpython-3.12.2-a"
        assert strip_prefix("cpython-3.12.2-a", "uv-") == "cpython-3.12.2-a"


class TestResolveOverrideTarget:
    """Tests for turning stored targets into installation paths."""

    def test_absolute_existing(self, layout, install):
        path = install("cpython-3.12.2-b", "3.12.2", register=False)
        assert resolve_override_target(path, layout.versions_dir) == path

    def test_absolute_missing(self, layout, tmp_path):
        assert resolve_override_target(str(tmp_path / "gone"), layout.versions_dir) is None

    def test_name_follows_symlink(self, layout, install):
        path = install("cpython-3.12.2-b", "3.12.2")
        assert resolve_override_target("uv-cpython-3.12.2-b", layout.versions_dir) == path

    def test_name_plain_directory(self, layout, versions):
        (versions / "3.12.2-custom").mkdir()
        assert resolve_override_target("3.12.2-custom", layout.versions_dir) == str(versions / "3.12.2-custom")

    def test_unknown_name(self, layout):
        assert resolve_override_target("uv-nope", layout.versions_dir) is None


class TestMatchOverride:
    """Tests for matching an override against a group."""

    def test_match_by_id_without_link(self, layout):
        """A registered id matches even before its link is inspected."""
        group = [rec("3.12.2", "uv-a"), rec("3.12.2", "uv-b")]
        assert match_override("uv-b", group, layout.versions_dir) is group[1]

    def test_match_by_custom_name(self, layout, versions, install):
        a = install("cpython-3.12.2-a", "3.12.2")
        b = install("cpython-3.12.2-b", "3.12.2")
        os.symlink(b, versions / "work-compat")
        group = [
            InstallationRecord("3.12.2", a, "uv-cpython-3.12.2-a"),
            InstallationRecord("3.12.2", b, "uv-cpython-3.12.2-b"),
        ]
        assert match_override("work-compat", group, layout.versions_dir) is group[1]

    def test_unresolvable(self, layout):
        group = [rec("3.12.2", "uv-a")]
        with pytest.raises(OverrideUnresolvable, match="could not be resolved"):
            match_override("uv-gone", group, layout.versions_dir)

    def test_resolves_outside_group(self, layout, install):
        other = install("cpython-3.13.0", "3.13.0")
        group = [rec("3.12.2", "uv-a")]
        with pytest.raises(OverrideUnresolvable, match="does not match any current uv candidate"):
            match_override(other, group, layout.versions_dir)


class TestResolveGroup:
    """Tests for resolve_group."""

    def test_single_member(self, links, store, caplog):
        group = [rec("3.12.7", "uv-cpython-3.12.7-any")]
        result = resolve_group("3.12.7", group, links, store, "uv-")
        assert result.action == "canonical"
        assert result.chosen is group[0]
        assert result.warnings == ()
        assert not [r for r in caplog.records if r.levelname == "WARNING"]

    def test_conflict_chooses_smallest_id(self, links, store, caplog):
        group = [rec("3.12.2", "uv-cpython-3.12.2-a"), rec("3.12.2", "uv-cpython-3.12.2-b")]
        result = resolve_group("3.12.2", group, links, store, "uv-")

        assert result.chosen.installation_id == "uv-cpython-3.12.2-a"
        assert result.conflict is True
        assert "multiple toolchains report 3.12.2; chose 'cpython-3.12.2-a'" in caplog.text
        assert "to select a different one, run one of:" in caplog.text
        assert "pyenv uv-alias 3.12.2 uv-cpython-3.12.2-a" in caplog.text
        assert "pyenv uv-alias 3.12.2 uv-cpython-3.12.2-b" in caplog.text

    def test_override_beats_smaller_id(self, links, store, caplog):
        group = [rec("3.12.2", "uv-cpython-3.12.2-a"), rec("3.12.2", "uv-cpython-3.12.2-b")]
        store.set("3.12.2", "uv-cpython-3.12.2-b")

        result = resolve_group("3.12.2", group, links, store, "uv-")

        assert result.action == "override"
        assert result.chosen.installation_id == "uv-cpython-3.12.2-b"
        warnings = [r for r in caplog.records if r.levelname == "WARNING"]
        assert len(warnings) == 1
        assert "using manual override 'uv-cpython-3.12.2-b' (cpython-3.12.2-b)" in warnings[0].getMessage()

    def test_override_single_member_is_silent(self, links, store, caplog):
        group = [rec("3.12.2", "uv-cpython-3.12.2-b")]
        store.set("3.12.2", "uv-cpython-3.12.2-b")
        result = resolve_group("3.12.2", group, links, store, "uv-")
        assert result.action == "override"
        assert result.warnings == ()

    def test_stale_override_falls_back(self, links, store, caplog):
        group = [rec("3.12.2", "uv-cpython-3.12.2-a"), rec("3.12.2", "uv-cpython-3.12.2-b")]
        store.set("3.12.2", "uv-cpython-3.12.2-removed")

        result = resolve_group("3.12.2", group, links, store, "uv-")

        assert result.action == "canonical"
        assert result.override == "uv-cpython-3.12.2-removed"
        assert result.chosen.installation_id == "uv-cpython-3.12.2-a"
        assert "override for '3.12.2' points to 'uv-cpython-3.12.2-removed'" in caplog.text
        assert "ignoring override" in caplog.text

    def test_protected_alias(self, links, store, versions, tmp_path, caplog):
        foreign = tmp_path / "nonuv"
        foreign.mkdir()
        os.symlink(foreign, versions / "3.12.2")
        store.set("3.12.2", "uv-cpython-3.12.2-a")
        group = [rec("3.12.2", "uv-cpython-3.12.2-a")]

        result = resolve_group("3.12.2", group, links, store, "uv-")

        assert result.action == "protected"
        assert result.chosen is None
        assert "alias '3.12.2' exists and points to a non-uv python; not overriding." in caplog.text
        assert "override" not in caplog.text


class TestResolveAliases:
    def test_one_resolution_per_version(self, links, store):
        records = [
            rec("3.13.0", "uv-c"),
            rec("3.12.2", "uv-b"),
            rec("3.12.2", "uv-a"),
        ]
        results = resolve_aliases(records, links, store, "uv-")
        assert [r.alias for r in results] == ["3.12.2", "3.13.0"]
        assert all(isinstance(r, AliasResolution) for r in results)
        assert results[0].to_dict()["chosen"]["installation_id"] == "uv-a"

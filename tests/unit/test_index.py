"""Unit tests for the identity indices."""

import pytest

from datajoin.index import MISSING, ObjectIndex, VersionIndex, equal_value, same_value


@pytest.mark.unit
@pytest.mark.index
class TestSameValue:
    def test_same_object_matches(self):
        raw = {"id": 1}
        assert same_value(raw, raw)

    def test_equal_containers_do_not_match(self):
        """Fresh containers are a new epoch even when their contents are equal"""
        assert not same_value({"id": 1}, {"id": 1})
        assert not same_value([1], [1])

    def test_equal_scalars_match(self):
        assert same_value(10**20, int("1" + "0" * 20))
        assert same_value("ab", "".join(["a", "b"]))
        assert same_value(None, None)

    def test_scalars_of_different_types_do_not_match(self):
        assert not same_value(1, 1.0)
        assert not same_value(1, True)

    def test_different_scalars_do_not_match(self):
        assert not same_value("a", "b")

    def test_equal_value_matches_equal_copies(self):
        assert equal_value(tuple([1, 2]), tuple([1, 2]))
        assert not equal_value((1, 2), (2, 1))

    def test_lookup_uses_given_comparison(self):
        index = ObjectIndex()
        index.store((1, 2), tuple([1, 2]), "pair")

        assert index.lookup((1, 2), tuple([1, 2]), equal_value) == "pair"
        assert index.lookup((1, 2), tuple([1, 2])) is MISSING


@pytest.mark.unit
@pytest.mark.index
class TestVersionIndex:
    def test_merge_overwrites_and_retains(self):
        index = VersionIndex({1: "one", 2: "two"})
        index.merge(VersionIndex({2: "TWO", 3: "three"}))

        assert index.resolve(1) == "one"
        assert index.resolve(2) == "TWO"
        assert index.resolve(3) == "three"
        assert len(index) == 3

    def test_unknown_identity_resolves_to_itself(self):
        index = VersionIndex({1: "one"})

        assert index.resolve("plain") == "plain"

    def test_prune_removes_dead_identities(self):
        index = VersionIndex({1: "one", 2: "two", 3: "three"})

        removed = index.prune([1, 3])

        assert removed == 1
        assert index.keys() == [1, 3]
        assert 2 not in index

    def test_empty_index(self):
        index = VersionIndex()

        assert len(index) == 0
        assert index.prune(set()) == 0
        assert repr(index) == "VersionIndex(0 identities)"


@pytest.mark.unit
@pytest.mark.index
class TestObjectIndex:
    def test_get_or_create_builds_once_per_raw_value(self):
        index = ObjectIndex()
        raw = {"id": 1}
        calls = []

        def create(value):
            calls.append(value)
            return object()

        first, created_first = index.get_or_create(1, raw, create)
        second, created_second = index.get_or_create(1, raw, create)

        assert first is second
        assert created_first and not created_second
        assert calls == [raw]

    def test_get_or_create_rebuilds_for_new_raw_value(self):
        index = ObjectIndex()
        old = index.get_or_create(1, {"v": "a"}, lambda raw: [raw])[0]

        new, created = index.get_or_create(1, {"v": "b"}, lambda raw: [raw])

        assert created
        assert new is not old
        assert new == [{"v": "b"}]

    def test_lookup_reports_missing_and_stale(self):
        index = ObjectIndex()
        raw = {"id": 1}
        index.store(1, raw, "obj")

        assert index.lookup(1, raw) == "obj"
        assert index.lookup(1, {"id": 1}) is MISSING
        assert index.lookup(2, raw) is MISSING

    def test_prune_and_evict_stale(self):
        index = ObjectIndex()
        kept, changed = {"id": 1}, {"id": 2}
        index.store(1, kept, "one")
        index.store(2, changed, "two")
        index.store(3, {"id": 3}, "three")

        assert index.prune({1, 2}) == 1

        current = {1: kept, 2: {"id": 2, "v": "new"}}
        evicted = index.evict_stale(current.__getitem__)

        assert evicted == [2]
        assert 1 in index
        assert 2 not in index
        assert len(index) == 1

    def test_clear(self):
        index = ObjectIndex()
        index.store("a", "a", "A")
        index.clear()

        assert len(index) == 0

    def test_discard_returns_existing_identities(self):
        index = ObjectIndex()
        index.store("a", "a", "A")

        assert index.discard(["a", "b"]) == ["a"]
        assert "a" not in index

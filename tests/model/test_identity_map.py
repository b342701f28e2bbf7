"""Tests for the per-scope identity map."""

from __future__ import annotations

from finder.model.identity_map import IdentityMap
from tests._support.models import GreenSmoothie, Milkshake


class TestIdentityMap:
    def test_put_and_get(self):
        imap = IdentityMap()
        resource = object()
        imap.put(GreenSmoothie, (1,), resource)
        assert imap.get(GreenSmoothie, (1,)) is resource
        assert imap.has(GreenSmoothie, (1,))

    def test_models_are_separate(self):
        imap = IdentityMap()
        imap.put(GreenSmoothie, (1,), "smoothie")
        assert imap.get(Milkshake, (1,)) is None

    def test_put_replaces(self):
        imap = IdentityMap()
        imap.put(GreenSmoothie, (1,), "a")
        imap.put(GreenSmoothie, (1,), "b")
        assert imap.get(GreenSmoothie, (1,)) == "b"
        assert len(imap) == 1

    def test_remove_missing_is_noop(self):
        imap = IdentityMap()
        imap.remove(GreenSmoothie, (1,))
        assert len(imap) == 0

    def test_clear_one_model(self):
        imap = IdentityMap()
        imap.put(GreenSmoothie, (1,), "a")
        imap.put(Milkshake, (1,), "b")
        imap.clear(GreenSmoothie)
        assert list(imap.keys(GreenSmoothie)) == []
        assert list(imap.keys(Milkshake)) == [(1,)]
        imap.clear()
        assert len(imap) == 0

    def test_repr(self):
        imap = IdentityMap()
        imap.put(GreenSmoothie, (1,), "a")
        assert repr(imap) == "IdentityMap({'GreenSmoothie': 1})"

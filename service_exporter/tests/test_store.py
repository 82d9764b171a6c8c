"""
Unit tests for ServiceMirror.
"""

import threading

import pytest

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from service_exporter.app.cache.store import ServiceMirror
from service_exporter.tests.fakes import make_service


class TestServiceMirror:
    """Test cases for ServiceMirror."""

    @pytest.fixture
    def mirror(self):
        """Create an empty mirror."""
        return ServiceMirror()

    def test_upsert_and_get(self, mirror):
        """Upserted entities are retrievable by uid."""
        service = make_service("u1", ips=["1.2.3.4"])
        mirror.upsert(service)

        assert mirror.get("u1") == service
        assert len(mirror) == 1

    def test_upsert_replaces_wholesale(self, mirror):
        """A later upsert fully replaces the previous state."""
        mirror.upsert(make_service("u1", ips=["1.2.3.4", "5.6.7.8"]))
        mirror.upsert(make_service("u1", ips=[]))

        assert mirror.get("u1").ingress == ()
        assert len(mirror) == 1

    def test_delete(self, mirror):
        """Deleting removes the entry and returns the removed state."""
        service = make_service("u1")
        mirror.upsert(service)

        assert mirror.delete("u1") == service
        assert mirror.get("u1") is None
        assert mirror.list() == []

    def test_delete_unknown_uid(self, mirror):
        """Deleting an unknown uid is a no-op."""
        assert mirror.delete("missing") is None

    def test_replace_reconciles(self, mirror):
        """Replace prunes missing entities and inserts new ones."""
        mirror.upsert(make_service("u1"))
        mirror.upsert(make_service("u2", ips=["10.0.0.1"]))

        counts = mirror.replace([
            make_service("u2", ips=["10.0.0.2"]),
            make_service("u3"),
        ])

        assert counts == {"added": 1, "updated": 1, "pruned": 1}
        assert sorted(service.uid for service in mirror.list()) == ["u2", "u3"]
        assert mirror.get("u2").ingress[0].ip == "10.0.0.2"

    def test_list_is_a_copy(self, mirror):
        """Mutating a listed snapshot does not affect the mirror."""
        mirror.upsert(make_service("u1"))
        snapshot = mirror.list()
        snapshot.clear()

        assert len(mirror) == 1

    def test_concurrent_readers_and_writers(self, mirror):
        """Concurrent writes and reads never corrupt the mirror."""
        errors = []

        def writer(offset):
            for i in range(200):
                uid = f"u{offset}-{i}"
                mirror.upsert(make_service(uid, ips=["1.1.1.1"]))
                if i % 2:
                    mirror.delete(uid)

        def reader():
            for _ in range(200):
                for service in mirror.list():
                    if service.ingress[0].ip != "1.1.1.1":
                        errors.append(service)

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
        threads += [threading.Thread(target=reader) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert len(mirror) == 4 * 100

"""Unit tests for setlist meta computation."""

from setlist_agent.meta import compute_meta, total_duration_seconds
from setlist_agent.models import Setlist, make_full_track


def make_setlist(*specs):
    tracks = [
        make_full_track({}, position=i, title=f"T{i}", artist="A", duration=d, source=s)
        for i, (d, s) in enumerate(specs, 1)
    ]
    return Setlist(setlist_name="Meta Test", genre="Pop", tracks=tracks)


class TestComputeMeta:
    def test_counts_and_sum(self):
        meta = compute_meta(make_setlist((200, "library"), (180, "external"), (220, "library")))
        assert meta.total_songs == 3
        assert meta.total_duration_seconds == 600
        assert meta.sources_breakdown == {"library": 2, "external": 1}

    def test_missing_duration_counts_zero(self):
        meta = compute_meta([{"duration": 100}, {"duration": None}, {"duration": "abc"}, {}])
        assert meta.total_duration_seconds == 100

    def test_unknown_source_counts_external(self):
        meta = compute_meta([{"source": "spotify"}, {}, {"source": "library"}])
        assert meta.sources_breakdown == {"library": 1, "external": 2}

    def test_empty(self):
        meta = compute_meta([])
        assert meta.total_songs == 0
        assert meta.total_duration_seconds == 0
        assert meta.sources_breakdown == {"library": 0, "external": 0}

    def test_breakdown_sums_to_total(self):
        meta = compute_meta(make_setlist((1, "library"), (2, "external"), (3, "other"), (4, "library")))
        assert sum(meta.sources_breakdown.values()) == meta.total_songs

    def test_idempotent(self):
        setlist = make_setlist((200, "library"), (180, "external"), (220, "library"))
        assert compute_meta(setlist) == compute_meta(setlist)

    def test_camel_case_dump(self):
        dumped = compute_meta([]).model_dump(by_alias=True)
        assert set(dumped) == {"totalSongs", "totalDurationSeconds", "sourcesBreakdown"}


class TestTotalDuration:
    def test_ignores_bools(self):
        assert total_duration_seconds([{"duration": True}, {"duration": 5}]) == 5

    def test_none_tracks(self):
        assert total_duration_seconds(None) == 0

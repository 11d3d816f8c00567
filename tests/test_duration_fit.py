"""Unit tests for the duration fitter."""

from setlist_agent.duration_fit import fit_tracks_to_target


def make_track(name, duration, required=False):
    return {"title": name, "duration": duration, "required": required}


def is_required(t):
    return t["required"]


def titles(result):
    return [t["title"] for t in result.tracks]


class TestNoTarget:
    def test_none_target_is_noop(self):
        tracks = [make_track("a", 100), make_track("b", 100, True)]
        result = fit_tracks_to_target(tracks, None, is_required)
        assert result.tracks == tracks
        assert result.exceeded is False

    def test_zero_target_is_noop(self):
        tracks = [make_track("a", 100)]
        result = fit_tracks_to_target(tracks, 0, is_required)
        assert result.tracks == tracks
        assert result.exceeded is False

    def test_negative_target_is_noop(self):
        tracks = [make_track("a", 100)]
        assert fit_tracks_to_target(tracks, -60, is_required).tracks == tracks


class TestFitting:
    def test_required_first_then_optional_in_order(self):
        tracks = [
            make_track("o1", 100),
            make_track("r1", 100, True),
            make_track("o2", 100),
            make_track("r2", 100, True),
        ]
        result = fit_tracks_to_target(tracks, 1000, is_required)
        assert titles(result) == ["r1", "r2", "o1", "o2"]
        assert result.exceeded is False

    def test_overflowing_optional_skipped_not_deferred(self):
        tracks = [
            make_track("r", 200, True),
            make_track("big", 250),
            make_track("small", 90),
            make_track("tiny", 20),
        ]
        result = fit_tracks_to_target(tracks, 300, is_required)
        assert titles(result) == ["r", "small"]

    def test_exact_fit_allowed(self):
        tracks = [make_track("a", 150), make_track("b", 150)]
        result = fit_tracks_to_target(tracks, 300, is_required)
        assert titles(result) == ["a", "b"]

    def test_required_always_kept_and_exceeded(self):
        tracks = [make_track("r1", 400, True), make_track("r2", 400, True), make_track("o", 10)]
        result = fit_tracks_to_target(tracks, 600, is_required)
        assert titles(result) == ["r1", "r2"]
        assert result.exceeded is True

    def test_exceeded_ignores_optional(self):
        tracks = [make_track("r", 100, True), make_track("o", 100)]
        result = fit_tracks_to_target(tracks, 150, is_required)
        assert titles(result) == ["r"]
        assert result.exceeded is False

    def test_optional_portion_within_budget(self):
        tracks = [make_track("r", 120, True)] + [make_track(f"o{i}", 70 + i * 13) for i in range(8)]
        target = 600
        result = fit_tracks_to_target(tracks, target, is_required)
        optional = sum(t["duration"] for t in result.tracks if not t["required"])
        assert optional <= target - 120

    def test_input_not_mutated(self):
        tracks = [make_track("o", 500), make_track("r", 100, True)]
        fit_tracks_to_target(tracks, 200, is_required)
        assert titles_of(tracks) == ["o", "r"]


def titles_of(tracks):
    return [t["title"] for t in tracks]

"""Tests for the streaming accent tracker."""

import numpy as np
import pytest

from chromapick.core.accents import AccentTracker


class TestAccentTracker:
    """Merging, ranking and eviction of accent candidates."""

    def setup_method(self):
        self.tracker = AccentTracker()

    def test_first_observation_creates_candidate(self):
        candidate = self.tracker.observe((250, 0, 0), 0.9)

        assert len(self.tracker) == 1
        assert candidate.rgb == (250, 0, 0)
        assert candidate.count == 1
        assert candidate.score == pytest.approx(0.9)

    def test_nearby_colors_merge(self):
        self.tracker.observe((250, 0, 0), 0.8)
        merged = self.tracker.observe((240, 5, 0), 0.95)

        assert len(self.tracker) == 1
        assert merged.rgb == (250, 0, 0)
        assert merged.count == 2
        assert merged.saturation == pytest.approx(0.95)
        assert merged.score == pytest.approx(0.95 * 2)

    def test_saturation_only_increases(self):
        self.tracker.observe((0, 0, 250), 0.9)
        candidate = self.tracker.observe((0, 0, 245), 0.6)

        assert candidate.saturation == pytest.approx(0.9)
        assert candidate.score == pytest.approx(1.8)

    def test_merge_distance_is_inclusive(self):
        self.tracker.observe((100, 0, 0), 0.7)
        self.tracker.observe((125, 0, 0), 0.7)  # exactly 25 away
        self.tracker.observe((151, 0, 0), 0.7)  # 26 away from the first

        assert len(self.tracker) == 2

    def test_candidates_sorted_by_score(self):
        self.tracker.observe((255, 0, 0), 0.6)
        self.tracker.observe((0, 255, 0), 0.9)

        assert [c.rgb for c in self.tracker] == [(0, 255, 0), (255, 0, 0)]

        # Two more reds push red above green.
        self.tracker.observe((255, 0, 0), 0.6)
        self.tracker.observe((255, 0, 0), 0.6)

        assert [c.rgb for c in self.tracker] == [(255, 0, 0), (0, 255, 0)]

    def test_lowest_score_is_evicted(self):
        tracker = AccentTracker(capacity=2)
        tracker.observe((255, 0, 0), 0.9)
        tracker.observe((0, 255, 0), 0.8)

        assert tracker.observe((0, 0, 255), 0.7) is None
        assert len(tracker) == 2

        tracker.observe((255, 0, 255), 0.95)
        assert [c.rgb for c in tracker] == [(255, 0, 255), (255, 0, 0)]

    def test_ties_keep_earlier_candidate(self):
        tracker = AccentTracker(capacity=1)
        tracker.observe((255, 0, 0), 0.8)

        assert tracker.observe((0, 255, 0), 0.8) is None
        assert tracker.candidates[0].rgb == (255, 0, 0)

    def test_full_tracker_ignores_late_weaker_regions(self):
        tracker = AccentTracker(capacity=20)
        for r in (0, 40, 80, 120, 160):
            for g in (0, 255):
                for b in (0, 255):
                    tracker.observe((r, g, b), 1.0, repeat=5)

        assert len(tracker) == 20
        assert tracker.observe((200, 128, 60), 0.9) is None
        assert all(c.count == 5 for c in tracker)

    def test_repeat_matches_individual_observations(self):
        batched = AccentTracker(capacity=3)
        single = AccentTracker(capacity=3)
        stream = [
            ((255, 0, 0), 1.0, 3),
            ((0, 255, 0), 0.9, 1),
            ((0, 0, 255), 0.8, 4),
            ((255, 255, 0), 1.0, 2),
            ((250, 5, 0), 0.95, 2),
        ]

        for rgb, saturation, repeat in stream:
            batched.observe(rgb, saturation, repeat=repeat)
            for _ in range(repeat):
                single.observe(rgb, saturation)

        assert [(c.rgb, c.count, c.saturation) for c in batched] == [
            (c.rgb, c.count, c.saturation) for c in single
        ]

    def test_repeat_of_evicted_color_leaves_tracker_unchanged(self):
        tracker = AccentTracker(capacity=1)
        tracker.observe((255, 0, 0), 0.9, repeat=3)

        assert tracker.observe((0, 0, 255), 0.8, repeat=10) is None
        assert len(tracker) == 1
        assert tracker.candidates[0].count == 3

    def test_candidates_returns_copy(self):
        self.tracker.observe((255, 0, 0), 0.9)
        self.tracker.candidates.clear()

        assert len(self.tracker) == 1


def _sorted_reference(stream, capacity, merge_distance):
    """Rank candidates by re-sorting the whole list after every change."""
    candidates = []
    for rgb, saturation in stream:
        match = next(
            (
                c
                for c in candidates
                if sum((a - b) ** 2 for a, b in zip(c["rgb"], rgb))
                <= merge_distance**2
            ),
            None,
        )
        if match is None:
            candidates.append(
                {"rgb": rgb, "count": 1, "saturation": saturation, "score": saturation}
            )
        else:
            match["count"] += 1
            match["saturation"] = max(match["saturation"], saturation)
            match["score"] = match["saturation"] * match["count"]
        candidates.sort(key=lambda c: c["score"], reverse=True)
        del candidates[capacity:]
    return [(c["rgb"], c["count"]) for c in candidates]


class TestTrackerOrdering:
    """Incremental ranking agrees with a full stable re-sort."""

    @pytest.mark.parametrize("seed", [0, 1, 2])
    def test_matches_full_resort(self, seed):
        generator = np.random.default_rng(seed)
        palette = [tuple(int(v) for v in c) for c in generator.integers(0, 256, (12, 3))]
        stream = [
            (palette[int(generator.integers(len(palette)))], float(s))
            for s in generator.choice([0.6, 0.75, 0.9, 1.0], size=400)
        ]

        tracker = AccentTracker(capacity=5, merge_distance=40)
        for rgb, saturation in stream:
            tracker.observe(rgb, saturation)

        assert [(c.rgb, c.count) for c in tracker] == _sorted_reference(stream, 5, 40)

    def test_promoted_candidate_is_still_found_by_color(self):
        tracker = AccentTracker(capacity=3)
        tracker.observe((255, 0, 0), 0.9)
        tracker.observe((0, 255, 0), 0.8)
        tracker.observe((0, 0, 255), 0.7)

        tracker.observe((0, 0, 255), 0.7, repeat=4)

        assert tracker.candidates[0].rgb == (0, 0, 255)
        assert tracker.find((5, 5, 250)).rgb == (0, 0, 255)
        assert tracker.find((250, 5, 5)).rgb == (255, 0, 0)
        assert tracker.find((5, 250, 5)).rgb == (0, 255, 0)

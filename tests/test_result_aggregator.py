"""Tests for deduplication, ranking and fingerprints."""

from conftest import make_image

from parallax_search.application.search.result_aggregator import (
    ResultAggregator,
    compute_fingerprint,
    extract_keywords,
)
from parallax_search.domain.entities import Orientation, SearchRequest


class TestDeduplicate:
    def test_first_provider_wins(self):
        shared = "https://img.example.com/shared.jpg"
        google = [make_image(1, "google", url=shared), make_image(2, "google")]
        serper = [make_image(1, "serper", url=shared), make_image(3, "serper")]

        merged = ResultAggregator().deduplicate([google, serper])

        assert [r.image_url for r in merged].count(shared) == 1
        kept = next(r for r in merged if r.image_url == shared)
        assert kept.origin_provider == "google"
        assert len(merged) == 3

    def test_duplicates_within_one_provider(self):
        shared = "https://img.example.com/same.jpg"
        results = [make_image(1, "brave", url=shared), make_image(2, "brave", url=shared)]
        merged = ResultAggregator().deduplicate([results])
        assert [r.id for r in merged] == ["brave_1"]

    def test_no_shared_urls_after_merge(self):
        lists = [
            [make_image(i, "a", url=f"https://x.com/{i % 7}.jpg") for i in range(20)],
            [make_image(i, "b", url=f"https://x.com/{i % 11}.jpg") for i in range(20)],
        ]
        merged = ResultAggregator().deduplicate(lists)
        urls = [r.image_url for r in merged]
        assert len(urls) == len(set(urls)) == 11


class TestRank:
    def test_sorted_by_resolution_descending(self):
        results = [
            make_image(1, width=800, height=600),
            make_image(2, width=3840, height=2160),
            make_image(3, width=1920, height=1080),
        ]
        ranked = ResultAggregator().rank(results)
        assert [r.id for r in ranked] == ["stub_2", "stub_3", "stub_1"]

    def test_unknown_resolution_last_and_stable(self):
        results = [
            make_image(1, width=0, height=0),
            make_image(2, width=640, height=480),
            make_image(3, width=1920, height=0),
            make_image(4, width=4000, height=3000),
            make_image(5, width=0, height=0),
        ]
        ranked = ResultAggregator().rank(results)
        assert [r.id for r in ranked] == ["stub_4", "stub_2", "stub_1", "stub_3", "stub_5"]

    def test_equal_resolution_keeps_order(self):
        results = [make_image(i, width=100, height=100) for i in range(5)]
        assert ResultAggregator().rank(results) == results

    def test_rank_invariant(self):
        sizes = [(0, 0), (10, 10), (300, 200), (0, 5), (1920, 1080), (20, 20), (5, 0), (1080, 1920)]
        results = [make_image(i, width=w, height=h) for i, (w, h) in enumerate(sizes)]
        ranked = ResultAggregator().rank(results)

        known = [r for r in ranked if r.resolution > 0]
        unknown = [r for r in ranked if r.resolution == 0]
        assert ranked == known + unknown
        for a, b in zip(known, known[1:]):
            assert a.resolution >= b.resolution
        assert [r.id for r in unknown] == ["stub_0", "stub_3", "stub_6"]

    def test_aggregate_dedups_then_ranks(self):
        shared = "https://img.example.com/shared.jpg"
        small = [make_image(1, "google", url=shared, width=100, height=100)]
        big = [make_image(1, "serper", url=shared, width=4000, height=4000), make_image(2, "serper", width=500, height=500)]

        merged = ResultAggregator().aggregate([small, big])

        assert [r.id for r in merged] == ["serper_2", "google_1"]


class TestFingerprint:
    def test_window_and_hint_do_not_change_fingerprint(self):
        a = SearchRequest(query="Mountains", count=10, start=1)
        b = SearchRequest(query="mountains ", count=50, start=41, provider_hint="serper")
        assert compute_fingerprint(a) == compute_fingerprint(b)

    def test_orientation_and_quality_change_fingerprint(self):
        base = SearchRequest(query="mountains")
        assert compute_fingerprint(base) != compute_fingerprint(
            SearchRequest(query="mountains", orientation=Orientation.PORTRAIT)
        )
        assert compute_fingerprint(base) != compute_fingerprint(
            SearchRequest(query="mountains", quality_hint="isz:lt")
        )

    def test_is_sha1_hex(self):
        fingerprint = compute_fingerprint(SearchRequest(query="sea"))
        assert len(fingerprint) == 40
        int(fingerprint, 16)


class TestExtractKeywords:
    def test_unique_lowercase_in_order(self):
        assert extract_keywords("Snowy  Mountains snowy LAKE") == ["snowy", "mountains", "lake"]

    def test_empty(self):
        assert extract_keywords("   ") == []

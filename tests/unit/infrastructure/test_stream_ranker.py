"""Tests for StreamRanker."""

from __future__ import annotations

from leecharr.infrastructure.ranking.stream_ranker import StreamRanker, rank_key


class TestStreamRanker:
    def test_size_dominates_resolution(self, make_stream) -> None:
        small_4k = make_stream(url="a", quality="4K", size="1 GB")
        big_720 = make_stream(url="b", quality="720p", size="5 GB")
        assert StreamRanker().rank([small_4k, big_720]) == [big_720, small_4k]

    def test_resolution_breaks_size_ties(self, make_stream) -> None:
        hd = make_stream(url="a", quality="1080p", size="2 GB")
        uhd = make_stream(url="b", quality="2160p", size="2048 MB")
        assert StreamRanker().rank([hd, uhd]) == [uhd, hd]

    def test_unknown_size_sorts_last(self, make_stream) -> None:
        unknown = make_stream(url="a", quality="4K", size=None)
        known = make_stream(url="b", quality="480p", size="300 MB")
        assert StreamRanker().rank([unknown, known]) == [known, unknown]

    def test_stable_for_equal_keys(self, make_stream) -> None:
        first = make_stream(url="a", quality="1080p", size="2 GB")
        second = make_stream(url="b", quality="1080p", size="2 GB")
        assert StreamRanker().rank([first, second]) == [first, second]

    def test_rank_key(self, make_stream) -> None:
        assert rank_key(make_stream(quality="1080p", size="1 GB")) == (1024.0, 1080)

    def test_sub_threshold_tier_counts_as_zero(self, make_stream) -> None:
        assert rank_key(make_stream(quality="480p", size="1 GB")) == (1024.0, 0)

    def test_sub_threshold_ties_with_unknown_tier(self, make_stream) -> None:
        web = make_stream(url="a", quality="WEB-DL", size="1 GB")
        sd = make_stream(url="b", quality="480p", size="1 GB")
        assert StreamRanker().rank([web, sd]) == [web, sd]
        assert StreamRanker().rank([sd, web]) == [sd, web]

    def test_configured_minimum_tier(self, make_stream) -> None:
        hd = make_stream(url="a", quality="720p", size="1 GB")
        sd = make_stream(url="b", quality="480p", size="1 GB")
        assert StreamRanker(min_tier=480).rank([hd, sd]) == [hd, sd]
        assert StreamRanker(min_tier=1080).rank([sd, hd]) == [sd, hd]

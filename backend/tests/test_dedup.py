"""Tests for canonical-URL deduplication."""

from federated_retrieval.services.dedup import dedupe, dedupe_candidates


def test_tracking_variant_and_bare_url_collapse_keeping_higher_score(make_candidate):
    """Score beats trust: the low-trust 0.9 candidate survives over the high-trust 0.2 one."""
    low_trust = make_candidate(
        url="https://news.example.com/story?utm_source=twitter",
        score=0.9,
        provider="searxng",
        trust_tier="low",
    )
    high_trust = make_candidate(
        url="https://news.example.com/story",
        score=0.2,
        provider="internal",
        trust_tier="high",
    )

    result = dedupe_candidates([high_trust, low_trust])

    assert result.unique == [low_trust]
    assert result.duplicates_removed == 1
    assert result.group_count == 1


def test_score_tie_broken_by_trust_tier(make_candidate):
    """Test equal scores keep the higher trust tier."""
    low = make_candidate(url="https://example.com/a", score=0.5, provider="searxng", trust_tier="low")
    medium = make_candidate(url="https://example.com/a/", score=0.5, provider="media", trust_tier="medium")

    assert dedupe([low, medium]) == [medium]


def test_full_tie_keeps_first_seen(make_candidate):
    """Test a full tie keeps the first candidate seen."""
    first = make_candidate(url="https://example.com/a", score=0.5, provider="p1", trust_tier="low")
    second = make_candidate(url="https://example.com/a", score=0.5, provider="p2", trust_tier="low")

    assert dedupe([first, second])[0] is first


def test_survivors_keep_first_seen_order(make_candidate):
    """Test survivors keep first-seen order."""
    a1 = make_candidate(url="https://a.example.com", score=0.1)
    b = make_candidate(url="https://b.example.com", score=0.9)
    a2 = make_candidate(url="https://a.example.com/", score=0.8, provider="media", trust_tier="medium")
    c = make_candidate(url="https://c.example.com", score=0.5)

    unique = dedupe([a1, b, a2, c])

    # a2 replaces a1 in a1's slot, not at the end
    assert unique == [a2, b, c]


def test_losers_are_discarded_not_merged(make_candidate):
    """Test losing duplicates are dropped untouched."""
    winner = make_candidate(url="https://example.com/a", score=0.9, metadata={"engine": "x"})
    loser = make_candidate(url="https://example.com/a", score=0.1, metadata={"extra": "y"}, provider="media")

    [kept] = dedupe([winner, loser])

    assert kept.metadata == {"engine": "x"}


def test_distinct_urls_untouched(make_candidate):
    """Test distinct canonical URLs all survive."""
    candidates = [make_candidate(url=f"https://example.com/{i}") for i in range(4)]
    result = dedupe_candidates(candidates)
    assert result.unique == candidates
    assert result.duplicates_removed == 0


def test_empty_input():
    """Test empty input gives an empty result."""
    assert dedupe([]) == []

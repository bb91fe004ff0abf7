from datetime import datetime, timezone

import pytest

from ranking import available_sub_tags, rank_videos
from schemas import FilterState


def ids(videos):
    return [v.id for v in videos]


def test_non_admin_never_sees_private_videos(make_video):
    videos = [make_video(is_public=False), make_video(), make_video(is_public=False)]

    ranked = rank_videos(videos, is_admin=False)

    assert all(v.is_public for v in ranked)
    assert len(ranked) == 1


def test_admin_sees_private_videos(make_video):
    videos = [make_video(is_public=False), make_video()]

    assert len(rank_videos(videos, is_admin=True)) == 2


def test_search_matches_title_or_sub_tag_case_insensitively(make_video):
    beach = make_video(title="Sunset at BEACH bar")
    tagged = make_video(title="Lunch", sub_tags=["Beachfront"])
    other = make_video(title="Clinic", sub_tags=["Healthcare"])

    ranked = rank_videos([beach, tagged, other], search_query="beach")

    assert set(ids(ranked)) == {beach.id, tagged.id}


def test_empty_search_keeps_everything(make_video):
    videos = [make_video(), make_video()]
    assert len(rank_videos(videos, search_query="")) == 2


def test_main_tag_filter_keeps_exact_matches_only(make_video):
    videos = [make_video(main_tag="Tourist"), make_video(main_tag="Resident"), make_video(main_tag="Tourist")]

    ranked = rank_videos(videos, FilterState(main_tag="Tourist"))

    assert ranked and all(v.main_tag == "Tourist" for v in ranked)


def test_sub_tag_filter_requires_exact_membership(make_video):
    hit = make_video(sub_tags=["Beach", "Hotel"])
    miss = make_video(sub_tags=["Beaches"])

    assert ids(rank_videos([hit, miss], FilterState(sub_tag="Beach"))) == [hit.id]


def test_rating_filter_is_a_minimum(make_video):
    videos = [make_video(rating=r) for r in (1, 3, 4, 5)]

    ranked = rank_videos(videos, FilterState(rating=4))

    assert sorted(v.rating for v in ranked) == [4, 5]


@pytest.mark.parametrize("sort_by", ["newest", "oldest", "highestRated", "lowestRated"])
def test_pinned_videos_always_come_first(make_video, sort_by):
    videos = [
        make_video(rating=5),
        make_video(is_sponsored=True, ribbon_color="gold", rating=5),
        make_video(is_pinned=True, rating=1),
        make_video(rating=2),
        make_video(is_pinned=True, rating=4),
    ]

    ranked = rank_videos(videos, FilterState(sort_by=sort_by))

    pinned_flags = [v.is_pinned for v in ranked]
    assert pinned_flags == sorted(pinned_flags, reverse=True)


def test_sponsored_follow_ribbon_tier_then_rating(make_video):
    unset = make_video(is_pinned=True, is_sponsored=True, ribbon_color="", rating=5)
    bronze = make_video(is_pinned=True, is_sponsored=True, ribbon_color="bronze", rating=5)
    silver_low = make_video(is_pinned=True, is_sponsored=True, ribbon_color="silver", rating=2)
    gold = make_video(is_pinned=True, is_sponsored=True, ribbon_color="gold", rating=1)
    silver_high = make_video(is_pinned=True, is_sponsored=True, ribbon_color="silver", rating=4)

    ranked = rank_videos([unset, bronze, silver_low, gold, silver_high])

    assert ids(ranked) == [gold.id, silver_high.id, silver_low.id, bronze.id, unset.id]


def test_sponsored_before_unsponsored_within_pin_group(make_video):
    plain = make_video(rating=5)
    sponsored = make_video(is_sponsored=True, ribbon_color="bronze", rating=1)

    assert ids(rank_videos([plain, sponsored], FilterState(sort_by="highestRated"))) == [sponsored.id, plain.id]


def test_pinned_beats_sponsored(make_video):
    sponsored = make_video(is_pinned=False, is_sponsored=True, ribbon_color="silver", rating=3)
    pinned = make_video(is_pinned=True, is_sponsored=False, rating=5)

    ranked = rank_videos([sponsored, pinned], FilterState(sort_by="newest"))

    assert ids(ranked) == [pinned.id, sponsored.id]


def test_requested_sort_orders_unsponsored_videos(make_video):
    def at(day):
        return datetime(2024, 3, day, tzinfo=timezone.utc)

    a = make_video(rating=2, created_at=at(1))
    b = make_video(rating=5, created_at=at(3))
    c = make_video(rating=3, created_at=at(2))
    videos = [a, b, c]

    assert ids(rank_videos(videos, FilterState(sort_by="newest"))) == [b.id, c.id, a.id]
    assert ids(rank_videos(videos, FilterState(sort_by="oldest"))) == [a.id, c.id, b.id]
    assert ids(rank_videos(videos, FilterState(sort_by="highestRated"))) == [b.id, c.id, a.id]
    assert ids(rank_videos(videos, FilterState(sort_by="lowestRated"))) == [a.id, c.id, b.id]


def test_rank_does_not_mutate_input(make_video):
    videos = [make_video(rating=1), make_video(is_pinned=True)]
    before = ids(videos)

    rank_videos(videos)

    assert ids(videos) == before


def test_available_sub_tags_respects_main_tag(make_video):
    videos = [
        make_video(main_tag="Tourist", sub_tags=["Beach", "Hotel"]),
        make_video(main_tag="Resident", sub_tags=["Healthcare"]),
        make_video(main_tag="Tourist", sub_tags=["Hotel", "Shopping"]),
    ]

    assert available_sub_tags(videos, "Tourist") == ["Beach", "Hotel", "Shopping"]
    assert available_sub_tags(videos) == ["Beach", "Hotel", "Healthcare", "Shopping"]

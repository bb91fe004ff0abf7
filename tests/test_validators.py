from validators import Delete, Keep, RevertTo, on_video_created, on_video_updated

VALID = "https://www.youtube.com/watch?v=abc123"
OTHER_VALID = "https://youtu.be/xyz789"


def test_create_with_valid_url_is_kept():
    assert on_video_created("v1", {"youtubeUrl": VALID}) == Keep()


def test_create_with_invalid_or_missing_url_is_deleted():
    assert on_video_created("v1", {"youtubeUrl": "https://vimeo.com/1"}) == Delete()
    assert on_video_created("v1", {"title": "no url"}) == Delete()
    assert on_video_created("v1", None) == Delete()


def test_update_without_url_change_is_a_noop():
    before = {"youtubeUrl": "https://vimeo.com/1", "title": "a"}
    after = {"youtubeUrl": "https://vimeo.com/1", "title": "b"}

    assert on_video_updated("v1", before, after) == Keep()


def test_update_to_valid_url_is_kept():
    assert on_video_updated("v1", {"youtubeUrl": VALID}, {"youtubeUrl": OTHER_VALID}) == Keep()


def test_update_to_invalid_url_reverts_to_previous_fields():
    before = {"_id": "oid", "youtubeUrl": VALID, "title": "Old", "rating": 4}
    after = {"_id": "oid", "youtubeUrl": "not a url", "title": "New", "rating": 2}

    action = on_video_updated("v1", before, after)

    assert action == RevertTo({"youtubeUrl": VALID, "title": "Old", "rating": 4})


def test_update_removing_url_reverts():
    action = on_video_updated("v1", {"youtubeUrl": VALID}, {"youtubeUrl": ""})
    assert isinstance(action, RevertTo)
    assert action.state["youtubeUrl"] == VALID

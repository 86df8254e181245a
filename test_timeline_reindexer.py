import pytest

from keyframe_store import KeyframeStore
from timeline_reindexer import TimelineReindexer

@pytest.fixture
def store():
    s = KeyframeStore()
    for frame, value in ((2, 1.0), (5, 2.0), (8, 3.0)):
        s = s.upsert("box-1", "x", frame, value)
    return s.upsert("box-2", "y", 5, 9.0).set_handle("box-1", "x", 8, 70, -20)


class TestTimelineReindexer:
    def test_insertion_shift(self, store):
        result = TimelineReindexer.on_frame_inserted(store, 5)
        assert result.get("box-1", "x").frames == [2, 6, 9]

    def test_insertion_keeps_values_and_handles(self, store):
        result = TimelineReindexer.on_frame_inserted(store, 0)
        kf = result.get_keyframe_at("box-1", "x", 9)
        assert kf.value == 3.0
        assert (kf.handle_out.tension, kf.handle_out.bias) == (70, -20)

    def test_deletion_shift(self, store):
        result = TimelineReindexer.on_frame_deleted(store, 5)
        assert result.get("box-1", "x").frames == [2, 7]

    def test_deletion_drops_emptied_properties(self, store):
        result = TimelineReindexer.on_frame_deleted(store, 5)
        assert result.get("box-2", "y") is None
        assert len(result) == 1

    def test_round_trip_restores_store(self, store):
        restored = TimelineReindexer.on_frame_deleted(TimelineReindexer.on_frame_inserted(store, 4), 4)
        assert restored == store

    def test_original_store_is_untouched(self, store):
        TimelineReindexer.on_frame_inserted(store, 0)
        assert store.get("box-1", "x").frames == [2, 5, 8]

    def test_empty_store_passes_through(self):
        empty = KeyframeStore()
        assert TimelineReindexer.on_frame_inserted(empty, 3) is empty
        assert TimelineReindexer.on_frame_deleted(empty, 3) is empty

    def test_duplicate_inserts_after_index(self, store):
        result = TimelineReindexer.on_frame_duplicated(store, 5)
        assert result.get("box-1", "x").frames == [2, 5, 9]

    def test_frame_count_shrink_drops_tail_keyframes(self, store):
        result = TimelineReindexer.on_frame_count_changed(store, 10, 6)
        assert result.get("box-1", "x").frames == [2, 5]

    def test_frame_count_grow_leaves_existing_frames(self, store):
        result = TimelineReindexer.on_frame_count_changed(store, 10, 14)
        assert result == store


class TestReindexerBounds:
    @pytest.fixture
    def from_zero(self):
        return KeyframeStore().upsert("box-1", "x", 0, 1.0).upsert("box-1", "x", 4, 2.0)

    @pytest.mark.parametrize("index", [-1, -7])
    def test_negative_delete_index_is_ignored(self, from_zero, index):
        result = TimelineReindexer.on_frame_deleted(from_zero, index)
        assert result is from_zero
        assert KeyframeStore.from_list(result.to_list()) == from_zero

    def test_negative_insert_index_is_ignored(self, from_zero):
        assert TimelineReindexer.on_frame_inserted(from_zero, -1) is from_zero

    @pytest.mark.parametrize("new_count", [0, -3])
    def test_frame_count_below_one_is_ignored(self, from_zero, new_count):
        assert TimelineReindexer.on_frame_count_changed(from_zero, 6, new_count) is from_zero

    def test_insert_past_last_keyframe_returns_same_store(self, store):
        assert TimelineReindexer.on_frame_inserted(store, 99) is store
        assert TimelineReindexer.on_frame_deleted(store, 99) is store
        assert TimelineReindexer.on_frame_count_changed(store, 10, 14) is store

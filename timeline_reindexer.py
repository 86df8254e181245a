# timeline_reindexer.py


class TimelineReindexer:
    """
    Keeps keyframe frame numbers in step with frames being inserted into or
    deleted from the sequence. Values and handles are carried over untouched.
    Negative indices name no frame and leave the store as it is.
    """
    @staticmethod
    def on_frame_inserted(store, at_index):
        if not store or at_index < 0: return store
        return store.map_keyframes(lambda k: k.with_frame(k.frame + 1) if k.frame >= at_index else k)

    @staticmethod
    def on_frame_deleted(store, at_index):
        if not store or at_index < 0: return store

        def shift(k):
            if k.frame == at_index: return None
            return k.with_frame(k.frame - 1) if k.frame > at_index else k

        return store.map_keyframes(shift)

    @staticmethod
    def on_frame_duplicated(store, index):
        """A duplicate of frame `index` is inserted right after it."""
        return TimelineReindexer.on_frame_inserted(store, index + 1)

    @staticmethod
    def on_frame_count_changed(store, old_count, new_count):
        """Frames are appended to or removed from the end of the sequence, one index at a time."""
        if new_count < 1: return store
        if new_count > old_count:
            for i in range(old_count, new_count):
                store = TimelineReindexer.on_frame_inserted(store, i)
        else:
            for i in range(old_count - 1, new_count - 1, -1):
                store = TimelineReindexer.on_frame_deleted(store, i)
        return store

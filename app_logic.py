# app_logic.py
import math

from PyQt6.QtCore import QObject, QSettings, pyqtSignal

from baking import BakingPass
from data_models import KeyframeError, is_animatable_property, is_number, property_id
from keyframe_logic import ValueDriver
from keyframe_store import KeyframingState
from timeline_reindexer import TimelineReindexer


class KeyframingSession(QObject):
    """
    Threads the keyframing state through edits coming from the timeline, the
    property controls and the frame sequencer. Each edit replaces the store
    with a new value; the previous one is kept in `history`.
    """
    store_changed = pyqtSignal()
    frame_changed = pyqtSignal(int)
    log_requested = pyqtSignal(str)
    error_occurred = pyqtSignal(str, str)

    MAX_HISTORY = 10000

    def __init__(self, settings=None):
        super().__init__()
        self.settings = settings if settings is not None else QSettings("TuiKeyframer", "KeyframeEngine")
        self.state = KeyframingState(
            enabled=self.settings.value("keyframing/enabled", True, type=bool),
            auto_key_enabled=self.settings.value("keyframing/autoKeyEnabled", False, type=bool),
        )
        self.current_frame = 0
        self.history = []

    @property
    def store(self):
        return self.state.store

    def _commit(self, new_store, message=None):
        if new_store is self.state.store:
            return False
        self.history.append(self.state.store)
        if len(self.history) > self.MAX_HISTORY:
            del self.history[:len(self.history) - self.MAX_HISTORY]
        self.state.store = new_store
        if message: self.log_requested.emit(message)
        self.store_changed.emit()
        return True

    # --- Keyframe editing ---

    def add_keyframe(self, node_id, prop, value):
        frame = self.current_frame
        try:
            new_store = self.store.upsert(node_id, prop, frame, value)
        except KeyframeError as e:
            self.log_requested.emit(f"ERROR: Keyframe not set on '{property_id(node_id, prop)}'. Reason: {e}")
            self.error_occurred.emit("Invalid Keyframe", str(e))
            return
        verb = "Updated" if self.store.has_keyframe_at(node_id, prop, frame) else "Added"
        self._commit(new_store, f"{verb} keyframe {node_id}.{prop} @ {frame} = {value}")

    def remove_keyframe(self, node_id, prop):
        frame = self.current_frame
        if not self._commit(self.store.remove(node_id, prop, frame), f"Removed keyframe {node_id}.{prop} @ {frame}"):
            self.log_requested.emit(f"No keyframe on {node_id}.{prop} @ {frame} to remove.")

    def set_handle(self, node_id, prop, frame, tension, bias):
        try:
            new_store = self.store.set_handle(node_id, prop, frame, tension, bias)
        except KeyframeError as e:
            self.log_requested.emit(f"ERROR: Ease not changed on '{property_id(node_id, prop)}'. Reason: {e}")
            self.error_occurred.emit("Invalid Ease", str(e))
            return
        kf = new_store.get_keyframe_at(node_id, prop, frame)
        if kf is not None:
            self._commit(new_store, f"Set ease of {node_id}.{prop} @ {frame} to tension {kf.handle_out.tension:g}, bias {kf.handle_out.bias:g}")

    def on_value_edited(self, node_id, prop, value):
        """Auto-key: records a keyframe when a control edits a value, if the session allows it."""
        if not (self.state.enabled and self.state.auto_key_enabled):
            return False
        if not (is_animatable_property(prop) or self.store.is_animated(node_id, prop)):
            return False
        self.add_keyframe(node_id, prop, value)
        return True

    # --- Preferences ---

    def toggle_auto_key(self):
        self.state.auto_key_enabled = not self.state.auto_key_enabled
        self.settings.setValue("keyframing/autoKeyEnabled", self.state.auto_key_enabled)
        self.log_requested.emit(f"Auto-key {'Enabled' if self.state.auto_key_enabled else 'Disabled'}.")

    def set_enabled(self, enabled):
        self.state.enabled = bool(enabled)
        self.settings.setValue("keyframing/enabled", self.state.enabled)
        self.log_requested.emit(f"Keyframing {'Enabled' if self.state.enabled else 'Disabled'}.")

    # --- Playhead ---

    def set_current_frame(self, frame):
        if not is_number(frame) or not math.isfinite(frame):
            self.log_requested.emit(f"Ignored playhead move to {frame!r}.")
            return
        frame = max(0, int(frame))
        if frame == self.current_frame: return
        self.current_frame = frame
        self.frame_changed.emit(frame)

    def jump_to_prev_keyframe(self, node_id, prop=None):
        frame = self.store.prev_keyframe_frame(self.current_frame, node_id, prop)
        if frame is None:
            self.log_requested.emit(f"No keyframe before frame {self.current_frame}.")
            return None
        self.set_current_frame(frame)
        return frame

    def jump_to_next_keyframe(self, node_id, prop=None):
        frame = self.store.next_keyframe_frame(self.current_frame, node_id, prop)
        if frame is None:
            self.log_requested.emit(f"No keyframe after frame {self.current_frame}.")
            return None
        self.set_current_frame(frame)
        return frame

    def driven_value(self, node_id, prop):
        animated = self.store.get(node_id, prop)
        return ValueDriver.drive(animated, self.current_frame) if animated else None

    # --- Frame sequencer hooks ---

    def frame_inserted(self, index):
        self._commit(TimelineReindexer.on_frame_inserted(self.store, index), f"Inserted frame {index}; shifted keyframes.")

    def frame_duplicated(self, index):
        """The copy lands at `index + 1` and becomes the current frame."""
        if index < 0: return
        self._commit(TimelineReindexer.on_frame_duplicated(self.store, index), f"Duplicated frame {index}; shifted keyframes.")
        self.set_current_frame(index + 1)

    def frame_deleted(self, index):
        """Deleting the current frame or one before it moves the playhead back by one."""
        if index < 0: return
        self._commit(TimelineReindexer.on_frame_deleted(self.store, index), f"Deleted frame {index}; shifted keyframes.")
        if index <= self.current_frame:
            self.set_current_frame(self.current_frame - 1)

    def frame_count_changed(self, old_count, new_count):
        if new_count < 1 or old_count == new_count: return
        self._commit(
            TimelineReindexer.on_frame_count_changed(self.store, old_count, new_count),
            f"Frame count changed from {old_count} to {new_count}; shifted keyframes.",
        )
        if self.current_frame >= new_count:
            self.set_current_frame(new_count - 1)

    # --- Export / persistence layout ---

    def bake(self, snapshots, **resolvers):
        baked = BakingPass.bake(snapshots, self.store, **resolvers)
        if baked is not snapshots:
            self.log_requested.emit(f"Baked {len(self.store)} animated propert{'y' if len(self.store) == 1 else 'ies'} across {len(snapshots)} frame(s).")
        return baked

    def to_dict(self):
        return self.state.to_dict()

    def load_dict(self, data):
        try:
            state = KeyframingState.from_dict(data)
        except KeyframeError as e:
            self.error_occurred.emit("Error Loading Keyframes", f"Failed to load keyframes:\n{e}")
            return False
        self.state = state
        self.history = []
        self.log_requested.emit(f"Loaded {len(state.store)} animated propert{'y' if len(state.store) == 1 else 'ies'}.")
        self.store_changed.emit()
        return True

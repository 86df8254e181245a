# keyframe_store.py
import math
from bisect import bisect_left, bisect_right

from data_models import AnimatedProperty, EasingHandle, Keyframe, KeyframeError, frame_index, is_number, property_id


class KeyframeStore:
    """
    Immutable collection of animated properties keyed by (node_id, property).

    Every edit returns a new store; the store it was called on stays valid, so
    callers can keep earlier values around for history. Property order follows
    first insertion, which keeps the serialized layout stable.
    """
    def __init__(self, properties=None):
        self._properties = {}
        for prop in properties or ():
            if prop.key in self._properties:
                raise KeyframeError(f"Duplicate animated property '{prop.property_id}'")
            self._properties[prop.key] = prop

    @classmethod
    def _wrap(cls, mapping):
        store = cls.__new__(cls)
        store._properties = mapping
        return store

    def __len__(self): return len(self._properties)
    def __iter__(self): return iter(self._properties.values())
    def __contains__(self, key): return key in self._properties
    def __bool__(self): return bool(self._properties)

    def __eq__(self, other):
        if not isinstance(other, KeyframeStore):
            return NotImplemented
        return list(self._properties.items()) == list(other._properties.items())

    def __repr__(self):
        return f"KeyframeStore({[p.property_id for p in self]})"

    # --- Queries ---

    def get(self, node_id, prop):
        return self._properties.get((node_id, prop))

    def get_keyframe_at(self, node_id, prop, frame):
        animated = self.get(node_id, prop)
        if animated is None: return None
        return next((k for k in animated.keyframes if k.frame == frame), None)

    def has_keyframe_at(self, node_id, prop, frame):
        return self.get_keyframe_at(node_id, prop, frame) is not None

    def is_animated(self, node_id, prop):
        return (node_id, prop) in self._properties

    def properties_for_node(self, node_id):
        return [p for p in self if p.node_id == node_id]

    def all_keyframe_frames(self, node_id=None):
        props = self if node_id is None else self.properties_for_node(node_id)
        return sorted({k.frame for p in props for k in p.keyframes})

    def _frames_for(self, node_id, prop):
        if prop is not None:
            animated = self.get(node_id, prop)
            return animated.frames if animated else []
        return self.all_keyframe_frames(node_id)

    def prev_keyframe_frame(self, frame, node_id, prop=None):
        """Nearest keyframe frame strictly before `frame`, on one property or on any property of the node."""
        frames = self._frames_for(node_id, prop)
        idx = bisect_left(frames, frame)
        return frames[idx - 1] if idx > 0 else None

    def next_keyframe_frame(self, frame, node_id, prop=None):
        """Nearest keyframe frame strictly after `frame`, on one property or on any property of the node."""
        frames = self._frames_for(node_id, prop)
        idx = bisect_right(frames, frame)
        return frames[idx] if idx < len(frames) else None

    # --- Edits ---

    def _with(self, key, animated):
        mapping = dict(self._properties)
        if animated is None:
            mapping.pop(key, None)
        else:
            mapping[key] = animated
        return KeyframeStore._wrap(mapping)

    def upsert(self, node_id, prop, frame, value):
        frame = frame_index(frame)
        if frame is None:
            return self
        if not is_number(value) or not math.isfinite(value):
            raise KeyframeError(f"Keyframe value for '{property_id(node_id, prop)}' must be finite, got {value!r}")

        existing = self.get(node_id, prop)
        if existing is None:
            return self._with((node_id, prop), AnimatedProperty(node_id, prop, (Keyframe(frame, value),)))

        if any(k.frame == frame for k in existing.keyframes):
            keyframes = tuple(k.with_value(value) if k.frame == frame else k for k in existing.keyframes)
        else:
            keyframes = existing.keyframes + (Keyframe(frame, value),)
        return self._with(existing.key, AnimatedProperty(node_id, prop, keyframes))

    def remove(self, node_id, prop, frame):
        existing = self.get(node_id, prop)
        if existing is None or frame not in existing.frames:
            return self
        keyframes = tuple(k for k in existing.keyframes if k.frame != frame)
        return self._with(existing.key, AnimatedProperty(node_id, prop, keyframes) if keyframes else None)

    def remove_property(self, node_id, prop):
        if (node_id, prop) not in self._properties:
            return self
        return self._with((node_id, prop), None)

    def remove_node(self, node_id):
        if not any(p.node_id == node_id for p in self):
            return self
        return KeyframeStore._wrap({k: p for k, p in self._properties.items() if p.node_id != node_id})

    def set_handle(self, node_id, prop, frame, tension, bias):
        handle = EasingHandle.clamped(tension, bias)
        existing = self.get(node_id, prop)
        if existing is None or frame not in existing.frames:
            return self
        keyframes = tuple(k.with_handles(handle) if k.frame == frame else k for k in existing.keyframes)
        return self._with(existing.key, AnimatedProperty(node_id, prop, keyframes))

    def map_keyframes(self, transform):
        """
        Applies `transform(keyframe) -> Keyframe | None` to every keyframe of every
        property. Returning None drops the keyframe; properties left empty are removed.
        """
        mapping, changed = {}, False
        for key, animated in self._properties.items():
            results = [transform(kf) for kf in animated.keyframes]
            if all(new is old for new, old in zip(results, animated.keyframes)):
                mapping[key] = animated
                continue
            changed = True
            keyframes = tuple(k for k in results if k is not None)
            if keyframes:
                mapping[key] = AnimatedProperty(animated.node_id, animated.property, keyframes)
        return KeyframeStore._wrap(mapping) if changed else self

    # --- Serialization ---

    @classmethod
    def from_list(cls, records):
        if not isinstance(records, list):
            raise KeyframeError(f"Animated properties must be a list, got {type(records).__name__}")
        return cls(AnimatedProperty.from_dict(r) for r in records)

    def to_list(self):
        return [p.to_dict() for p in self]


class KeyframingState:
    """The keyframing block persisted with a project."""
    def __init__(self, store=None, enabled=True, auto_key_enabled=False):
        self.store = store if store is not None else KeyframeStore()
        self.enabled, self.auto_key_enabled = enabled, auto_key_enabled

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, dict):
            raise KeyframeError(f"Keyframing state must be a mapping: {data!r}")
        return cls(
            store=KeyframeStore.from_list(data.get("animatedProperties", [])),
            enabled=bool(data.get("enabled", True)),
            auto_key_enabled=bool(data.get("autoKeyEnabled", False)),
        )

    def to_dict(self):
        return {
            "enabled": self.enabled,
            "autoKeyEnabled": self.auto_key_enabled,
            "animatedProperties": self.store.to_list(),
        }

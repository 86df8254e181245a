# data_models.py
import math
from dataclasses import dataclass, field, replace

DEFAULT_TENSION = 33.0
DEFAULT_BIAS = 0.0

ANIMATABLE_PROPERTIES = (
    "x",
    "y",
    "zIndex",
    "marginTop",
    "marginRight",
    "marginBottom",
    "marginLeft",
    "paddingTop",
    "paddingRight",
    "paddingBottom",
    "paddingLeft",
    "gap",
    "rowGap",
    "columnGap",
    "flexGrow",
    "flexShrink",
)


class KeyframeError(ValueError):
    """Raised for non-finite numbers and malformed keyframe records."""
    pass


class InvalidHandleError(KeyframeError):
    pass


def is_animatable_property(name):
    return name in ANIMATABLE_PROPERTIES


def property_id(node_id, prop):
    return f"{node_id}:{prop}"


def is_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def frame_index(frame):
    """Returns `frame` as an int when it names a frame (a non-negative whole number), else None."""
    if not is_number(frame) or not math.isfinite(frame) or frame < 0 or int(frame) != frame:
        return None
    return int(frame)


def _clamp(n, lo, hi):
    return lo if n < lo else hi if n > hi else n


def _require_number(data, key, what):
    if key not in data:
        raise KeyframeError(f"{what} is missing '{key}': {data!r}")
    value = data[key]
    if not is_number(value):
        raise KeyframeError(f"{what} has a non-numeric '{key}': {data!r}")
    if not math.isfinite(value):
        raise KeyframeError(f"{what} has a non-finite '{key}': {data!r}")
    return value


@dataclass(frozen=True)
class EasingHandle:
    """Tension (0..100) and bias (-100..100) of one Bezier control point."""
    tension: float = DEFAULT_TENSION
    bias: float = DEFAULT_BIAS

    @classmethod
    def clamped(cls, tension, bias):
        if not (is_number(tension) and is_number(bias)):
            raise InvalidHandleError(f"Handle components must be numbers, got tension={tension!r}, bias={bias!r}")
        if not (math.isfinite(tension) and math.isfinite(bias)):
            raise InvalidHandleError(f"Handle components must be finite, got tension={tension!r}, bias={bias!r}")
        return cls(_clamp(float(tension), 0.0, 100.0), _clamp(float(bias), -100.0, 100.0))

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, dict):
            raise KeyframeError(f"Handle record must be a mapping: {data!r}")
        return cls.clamped(_require_number(data, "tension", "Handle"), _require_number(data, "bias", "Handle"))

    def to_dict(self):
        return {"tension": self.tension, "bias": self.bias}


@dataclass(frozen=True)
class Keyframe:
    frame: int
    value: float
    handle_out: EasingHandle = field(default_factory=EasingHandle)
    handle_in: EasingHandle = field(default_factory=EasingHandle)

    def with_value(self, value): return replace(self, value=value)
    def with_frame(self, frame): return replace(self, frame=frame)
    def with_handles(self, handle): return replace(self, handle_out=handle, handle_in=handle)

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, dict):
            raise KeyframeError(f"Keyframe record must be a mapping: {data!r}")
        frame = _require_number(data, "frame", "Keyframe")
        if int(frame) != frame or frame < 0:
            raise KeyframeError(f"Keyframe frame must be a non-negative integer: {data!r}")
        handle_out = EasingHandle.from_dict(data["handleOut"]) if "handleOut" in data else EasingHandle()
        handle_in = EasingHandle.from_dict(data["handleIn"]) if "handleIn" in data else EasingHandle()
        return cls(int(frame), _require_number(data, "value", "Keyframe"), handle_out, handle_in)

    def to_dict(self):
        return {
            "frame": self.frame,
            "value": self.value,
            "handleOut": self.handle_out.to_dict(),
            "handleIn": self.handle_in.to_dict(),
        }


@dataclass(frozen=True)
class AnimatedProperty:
    """The keyframe timeline of one (node, property) pair, sorted by frame."""
    node_id: str
    property: str
    keyframes: tuple

    def __post_init__(self):
        if not self.keyframes:
            raise KeyframeError(f"Animated property '{property_id(self.node_id, self.property)}' has no keyframes")
        object.__setattr__(self, "keyframes", tuple(sorted(self.keyframes, key=lambda k: k.frame)))

    @property
    def key(self): return (self.node_id, self.property)

    @property
    def property_id(self): return property_id(self.node_id, self.property)

    @property
    def frames(self): return [k.frame for k in self.keyframes]

    @property
    def first(self): return self.keyframes[0]

    @property
    def last(self): return self.keyframes[-1]

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, dict):
            raise KeyframeError(f"Animated property record must be a mapping: {data!r}")
        node_id, prop = data.get("nodeId"), data.get("property")
        if not isinstance(node_id, str) or not isinstance(prop, str):
            raise KeyframeError(f"Animated property record needs string 'nodeId' and 'property': {data!r}")
        raw_keyframes = data.get("keyframes")
        if not isinstance(raw_keyframes, list) or not raw_keyframes:
            raise KeyframeError(f"Animated property '{property_id(node_id, prop)}' needs a non-empty 'keyframes' list")
        keyframes = [Keyframe.from_dict(k) for k in raw_keyframes]
        frames = [k.frame for k in keyframes]
        if len(set(frames)) != len(frames):
            raise KeyframeError(f"Animated property '{property_id(node_id, prop)}' has duplicate frames: {sorted(frames)}")
        return cls(node_id, prop, tuple(keyframes))

    def to_dict(self):
        return {
            "nodeId": self.node_id,
            "property": self.property,
            "keyframes": [k.to_dict() for k in self.keyframes],
        }

# keyframe_logic.py
from bisect import bisect_left

from data_models import EasingHandle


class CurveSolver:
    """
    Eases a normalized segment time through a cubic Bezier shaped by two handles.
    P0 = (0, 0) and P3 = (1, 1); P1 comes from the start keyframe's out-handle,
    P2 from the end keyframe's in-handle.
    """
    MAX_ITERATIONS = 8
    X_TOLERANCE = 1e-4
    MIN_SLOPE = 1e-6
    BIAS_OFFSET = 0.33
    OUTPUT_MIN, OUTPUT_MAX = -0.5, 1.5

    @staticmethod
    def control_points(handle_out: EasingHandle, handle_in: EasingHandle) -> tuple[float, float, float, float]:
        """Returns (p1x, p1y, p2x, p2y) for the segment's two inner control points."""
        p1x = handle_out.tension / 100
        p2x = 1 - handle_in.tension / 100
        p1y = handle_out.bias / 100 + CurveSolver.BIAS_OFFSET
        p2y = 1 - handle_in.bias / 100 - CurveSolver.BIAS_OFFSET
        return p1x, p1y, p2x, p2y

    @staticmethod
    def bezier_x(u: float, p1x: float, p2x: float) -> float:
        mu = 1 - u
        return 3 * mu * mu * u * p1x + 3 * mu * u * u * p2x + u * u * u

    @staticmethod
    def bezier_x_derivative(u: float, p1x: float, p2x: float) -> float:
        mu = 1 - u
        return 3 * mu * mu * p1x + 6 * mu * u * (p2x - p1x) + 3 * u * u * (1 - p2x)

    @staticmethod
    def bezier_y(u: float, p1y: float, p2y: float) -> float:
        mu = 1 - u
        return 3 * mu * mu * u * p1y + 3 * mu * u * u * p2y + u * u * u

    @staticmethod
    def find_parameter(t: float, p1x: float, p2x: float) -> float:
        """Newton-Raphson search for the curve parameter u whose X equals t."""
        if t <= 0: return 0.0
        if t >= 1: return 1.0
        u = t
        for _ in range(CurveSolver.MAX_ITERATIONS):
            error = CurveSolver.bezier_x(u, p1x, p2x) - t
            if abs(error) < CurveSolver.X_TOLERANCE:
                break
            slope = CurveSolver.bezier_x_derivative(u, p1x, p2x)
            if abs(slope) < CurveSolver.MIN_SLOPE:
                break
            u = min(1.0, max(0.0, u - error / slope))
        return u

    @staticmethod
    def solve(t: float, handle_out: EasingHandle, handle_in: EasingHandle) -> float:
        """Returns the eased time for t in [0, 1], clamped to the overshoot band [-0.5, 1.5]."""
        p1x, p1y, p2x, p2y = CurveSolver.control_points(handle_out, handle_in)
        u = CurveSolver.find_parameter(t, p1x, p2x)
        y = CurveSolver.bezier_y(u, p1y, p2y)
        return min(CurveSolver.OUTPUT_MAX, max(CurveSolver.OUTPUT_MIN, y))

    @staticmethod
    def sample(handle_out: EasingHandle, handle_in: EasingHandle, steps: int = 32) -> list[tuple[float, float]]:
        """Evenly spaced (t, eased) points for drawing a segment's curve."""
        steps = max(1, int(steps))
        return [(i / steps, CurveSolver.solve(i / steps, handle_out, handle_in)) for i in range(steps + 1)]


class ValueDriver:
    """
    Resolves the value of an animated property at any frame: exact hits are returned
    verbatim, frames outside the keyed range hold the nearest end, and frames between
    two keyframes are eased through the CurveSolver.
    """
    @staticmethod
    def drive(animated_property, frame: int) -> float:
        keyframes = animated_property.keyframes
        frames = [k.frame for k in keyframes]
        idx = bisect_left(frames, frame)

        if idx < len(frames) and frames[idx] == frame:
            return keyframes[idx].value
        if idx == 0:
            return keyframes[0].value
        if idx == len(frames):
            return keyframes[-1].value

        start, end = keyframes[idx - 1], keyframes[idx]
        duration = end.frame - start.frame
        if duration == 0:
            return start.value
        t = (frame - start.frame) / duration
        eased = CurveSolver.solve(t, start.handle_out, end.handle_in)
        return start.value + (end.value - start.value) * eased

    @staticmethod
    def drive_all(store, frame: int) -> dict:
        """Driven values of every animated property in the store at one frame."""
        return {prop.key: ValueDriver.drive(prop, frame) for prop in store}

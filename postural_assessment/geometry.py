# Geometry Kernel - planar vector math on landmark points
import numpy as np

from postural_assessment.errors import DegenerateGeometry
from postural_assessment.models import Point


def as_vector(p) -> np.ndarray:
    """Planar (x, y) vector of a point; z is ignored by every current rule."""
    return np.array([p.x, p.y], dtype=float)


def angle_between(p1, vertex, p3) -> float:
    """
    Angle at vertex formed by rays vertex->p1 and vertex->p3.

    Args:
        p1: First ray endpoint
        vertex: Angle vertex
        p3: Second ray endpoint

    Returns:
        Angle in degrees, within [0, 180]

    Raises:
        DegenerateGeometry: if either ray has zero length
    """
    v1 = as_vector(p1) - as_vector(vertex)
    v2 = as_vector(p3) - as_vector(vertex)

    mag1 = float(np.linalg.norm(v1))
    mag2 = float(np.linalg.norm(v2))
    if mag1 == 0.0 or mag2 == 0.0:
        raise DegenerateGeometry("angle ray has zero length")

    cos_angle = float(np.dot(v1, v2) / (mag1 * mag2))
    cos_angle = max(-1.0, min(1.0, cos_angle))
    return float(np.degrees(np.arccos(cos_angle)))


def distance(p1, p2) -> float:
    """Euclidean distance in the image plane"""
    return float(np.linalg.norm(as_vector(p2) - as_vector(p1)))


def midpoint(p1, p2) -> Point:
    return Point(
        x=(p1.x + p2.x) / 2,
        y=(p1.y + p2.y) / 2,
        z=(p1.z + p2.z) / 2,
    )


def ratio(part: float, whole: float) -> float:
    """part / whole, failing closed on a zero-length reference"""
    if whole == 0:
        raise DegenerateGeometry("reference length is zero")
    return part / whole


def percent_of(part: float, whole: float) -> float:
    return ratio(part, whole) * 100


def offset(p, dx: float = 0.0, dy: float = 0.0) -> Point:
    """Point displaced in the image plane, used for horizontal/vertical reference rays"""
    return Point(x=p.x + dx, y=p.y + dy, z=p.z)

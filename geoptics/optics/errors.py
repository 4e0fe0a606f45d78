"""Exception types for the geometric optics engine."""


class GeometricOpticsError(Exception):
    """Base exception for all engine errors."""

    pass


class OpticConfigError(GeometricOpticsError, ValueError):
    """An optic was configured with values that cannot describe a physical optic."""

    pass


class SceneConfigError(GeometricOpticsError, ValueError):
    """A scene was assembled with inputs outside what the engine supports."""

    pass


__all__ = [
    "GeometricOpticsError",
    "OpticConfigError",
    "SceneConfigError",
]

"""Project curves onto a plane as straight-segment approximations."""

__all__ = ["cli", "curves", "errors", "export", "parameters", "pipeline", "plane", "projection", "tessellation", "vec3"]

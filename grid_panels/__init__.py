"""Printable grid panel generator (front window panel + walled backplate)."""

__all__ = ["export", "frame", "mesh", "parameters", "pipeline", "sections", "walls"]

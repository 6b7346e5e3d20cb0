"""Distribution metadata read from the installed ``vibe-workflows`` package."""

from __future__ import annotations

import importlib.metadata

__all__ = ("__project__", "__version__")

_DISTRIBUTION = "vibe-workflows"

__version__ = importlib.metadata.version(_DISTRIBUTION)
"""Installed version, reported by ``resume_workflow`` as the tool version."""
__project__ = importlib.metadata.metadata(_DISTRIBUTION)["Name"]
"""Distribution name."""

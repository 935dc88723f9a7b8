"""Utility helpers for cvmfs library."""

from .volume_names import check_path_component
from .volume_names import parse_volume_name

__all__ = ["check_path_component", "parse_volume_name"]

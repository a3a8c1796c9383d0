"""Default track selection."""

from streamnorm.selection.defaults import DefaultSelection, select_defaults

__all__ = ["DefaultSelection", "select_defaults"]

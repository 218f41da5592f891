"""TaskTree - multi-parent task hierarchy manager."""

__version__ = "0.1.0"

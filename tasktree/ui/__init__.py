"""TaskTree terminal user interface."""

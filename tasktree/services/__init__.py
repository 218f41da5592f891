"""Service layer for TaskTree: persistence, state store and hierarchy engine."""

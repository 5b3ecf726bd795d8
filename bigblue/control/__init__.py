"""Drive logic: direction edges, spiral search and the UI-facing core."""

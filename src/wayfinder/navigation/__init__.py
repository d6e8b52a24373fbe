"""Navigation — the guard pipeline and history backends."""

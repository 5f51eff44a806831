"""Real-time 1D Saint-Venant channel solver."""

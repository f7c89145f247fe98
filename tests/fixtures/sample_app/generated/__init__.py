"""Generated markers and wiring of the sample application."""

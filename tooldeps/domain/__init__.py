"""Pure tool-dependency logic with no filesystem or process effects."""

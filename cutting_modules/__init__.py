"""Business modules built on the cutting kernel."""

"""REST edge for the CarpCrafter UI."""

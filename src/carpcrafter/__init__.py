"""CarpCrafter: AI invention generator with a quota-aware local gallery."""

__version__ = "0.1.0"

"""Core protocol: configuration, auction lifecycle and storage."""

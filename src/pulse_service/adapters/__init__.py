"""Local (desktop) implementations of the platform ports."""

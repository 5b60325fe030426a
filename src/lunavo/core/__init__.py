"""Core configuration, enumerations and static tables."""

"""Core configuration, types, exceptions and logging for A402."""

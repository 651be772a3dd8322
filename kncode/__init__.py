"""Session storage, compaction, recovery, prompt building and headless protocol for a coding agent."""

__version__ = "0.1.0"
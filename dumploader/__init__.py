"""dumploader -- streaming loader for catalog XML dumps into a relational store."""

__version__ = "0.1.0"

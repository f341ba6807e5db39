"""Concrete adapters for the interfaces in ``dumploader.interfaces``."""

"""golem - an IRC bot built from independent plugins."""

__version__ = "0.1.0"

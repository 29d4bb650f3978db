"""ENSight: wallet interaction graph, blacklist risk overlay and ENS lookup cache."""

__version__ = "0.3.0"

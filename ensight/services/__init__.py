"""Core services: expiring cache, backing store, graph store and risk overlay."""

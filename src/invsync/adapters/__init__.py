"""Adapters binding the domain ports to storage and the snapshot source."""

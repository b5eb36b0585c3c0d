"""Resumable, conflict-tolerant history flattening for git."""

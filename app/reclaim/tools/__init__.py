"""Wrappers for out-of-process cleanup tools."""

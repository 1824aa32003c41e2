"""Shared utilities for Manifold core (I/O, subprocess, merging, locators)."""

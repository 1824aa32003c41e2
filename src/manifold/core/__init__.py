"""Manifold core: sources, component tree, install/generate engines and renderers."""

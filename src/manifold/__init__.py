"""
Manifold - component-tree composition for Kubernetes manifests

Manifold resolves a tree of versioned components fetched from git, Helm chart
repositories, the local filesystem and plain HTTP, then renders every
installed component into one manifest file.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]

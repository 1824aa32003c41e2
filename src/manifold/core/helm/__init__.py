"""Collaborator wrapping the external ``helm`` templating backend.

See :mod:`manifold.core.helm.template` and :mod:`manifold.core.helm.version`.
"""

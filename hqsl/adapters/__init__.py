"""Adapters for external data and services.

Submodules are imported directly (``from hqsl.adapters.keyserver import ...``)
so that the band map can be loaded without pulling in the OpenPGP stack.
"""

"""Bundled notation metamodels."""

from .archimate import archimate_metamodel

__all__ = ["archimate_metamodel"]

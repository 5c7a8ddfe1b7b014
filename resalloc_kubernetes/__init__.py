"""Allocate Kubernetes pods for the resalloc framework."""

__version__ = "1.0.5"

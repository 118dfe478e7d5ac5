"""Discrete-element simulation of a deformable pipe buried in a periodic packing of disks."""

__version__ = "0.1.0"
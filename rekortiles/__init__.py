"""Signed notes, checkpoints, signing-algorithm policy and tile reading for a transparency log."""

__version__ = "0.1.0"
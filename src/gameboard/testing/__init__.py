# src/gameboard/testing/__init__.py
"""Fake height samplers for exercising the gameboard without a 3D host."""

from .fakes import GridHeightSampler, HeightFieldSampler, SampleCall, rectangle

__all__ = ["GridHeightSampler", "HeightFieldSampler", "SampleCall", "rectangle"]

"""Adaptive card rendering, binding, validation and interaction engine."""

"""Torch components for evaluating driving fields."""

from .driving_field import DrivingField

__all__ = ["DrivingField"]

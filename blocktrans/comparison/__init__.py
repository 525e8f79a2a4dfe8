"""A/B provider comparison."""

from .ab_compare import ABComparator

__all__ = ['ABComparator']

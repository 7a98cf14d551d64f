"""Utility helpers shared across elasticsql."""

from elasticsql.utils import logging

__all__ = ("logging",)

"""
Card components for PhenoFarm.

This module exposes the reusable card building blocks used by the admin pages.
"""

from .card import Card, CardHeader, CardTitle, CardContent, CardFooter, StatCard

__all__ = ["Card", "CardHeader", "CardTitle", "CardContent", "CardFooter", "StatCard"]

"""Data providers: the contract and a JSON file backed reference implementation."""

from .base import DataProvider
from .file import JsonFileProvider

__all__ = ['DataProvider', 'JsonFileProvider']

"""Concurrency helpers: worker pool for sync handlers and sync/async interop."""

from .interop import run_sync
from .pool import ThreadPool

__all__ = ["ThreadPool", "run_sync"]

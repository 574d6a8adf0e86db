"""Retry delay strategies."""

from .backoff import Backoff, ConstantBackoff, ExponentialBackoff, LinearBackoff

__all__ = ["Backoff", "ConstantBackoff", "LinearBackoff", "ExponentialBackoff"]

"""Dispatching model-produced tool calls against a registry."""

from .dispatcher import ArgsCheck, CallDescriptor, Dispatcher, parse_call_descriptors

__all__ = ["Dispatcher", "CallDescriptor", "ArgsCheck", "parse_call_descriptors"]

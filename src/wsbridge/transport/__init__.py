"""Transports that feed decoded messages to the request handler."""

from wsbridge.transport.stdio import StdioServer

__all__ = ["StdioServer"]

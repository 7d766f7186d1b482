"""Packet templates, packet buffers, header matchers, DQO descriptor layouts and ordered test fixtures."""

__version__ = "0.1.0"
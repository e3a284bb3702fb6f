"""Fog controller: REST API and CLI for managing IoT fog device fleets."""

__version__ = "1.0.0"

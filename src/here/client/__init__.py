# src/here/client/__init__.py
"""Client agent announcing this host's presence to a Here registry."""

from .agent import AgentState, ClientAgent
from .api import RegistryClient, RegistryClientConfig

__all__ = ["AgentState", "ClientAgent", "RegistryClient", "RegistryClientConfig"]

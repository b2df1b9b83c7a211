"""
Crewvar client core.

Holds the pieces the app runs on the device: the HTTP client for the auth
backend, an in-process auth SDK, the persisted session store and the session
manager that reconciles the two sources of identity.
"""

from crewvar_client.app import CrewvarApp
from crewvar_client.config import ClientSettings
from crewvar_client.exceptions import CallableError

__all__ = ["CallableError", "ClientSettings", "CrewvarApp"]

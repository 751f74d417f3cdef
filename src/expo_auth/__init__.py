"""OAuth2/PKCE login relay for mobile clients."""

__version__ = "0.1.0"

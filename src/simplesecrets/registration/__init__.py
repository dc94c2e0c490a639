"""Registration of SPIFFE identities with a SPIRE server container."""

from .registrar import Registrar

__all__ = ["Registrar"]

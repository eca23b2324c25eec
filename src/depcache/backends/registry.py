"""
Backend discovery and registration.
"""

from typing import Dict, Type
from .base import Backend, EnvironmentValidation


class BackendRegistry:
    """
    Central registry for all backends.
    Configuration refers to backends by their registered name.
    """

    _backends: Dict[str, Type[Backend]] = {}

    @classmethod
    def register(cls, name: str, backend_cls: Type[Backend]):
        """Register a backend class."""
        cls._backends[name] = backend_cls

    @classmethod
    def get_backend(cls, name: str) -> Backend:
        """Get backend instance by name."""
        if name not in cls._backends:
            available = ", ".join(sorted(cls._backends.keys()))
            raise ValueError(
                f"Unknown backend: '{name}'. Available: {available}"
            )

        return cls._backends[name]()

    @classmethod
    def list_backends(cls) -> Dict[str, EnvironmentValidation]:
        """List all backends with their validation status."""
        results = {}
        for name, backend_cls in cls._backends.items():
            try:
                backend = backend_cls()
                results[name] = backend.validate_environment()
            except Exception as e:
                results[name] = EnvironmentValidation(
                    is_valid=False,
                    backend_name=name,
                    errors=[str(e)],
                    warnings=[],
                    info={}
                )
        return results

#!/usr/bin/env python3
"""
Friendly names for pluggable providers.

Deserializers and transport clients are decorated with simple_provider_name so
logs and diagnostics can refer to them by a short, readable name.
"""

from typing import Callable, Dict, Type

# Registry for provider friendly names
_provider_friendly_names: Dict[Type, str] = {}


def simple_provider_name(friendly_name: str) -> Callable:
    """
    Decorator to assign a friendly name to a provider class.

    Usage:
        @simple_provider_name("JSON")
        class JsonDeserializer:
            pass
    """
    def decorator(cls: Type) -> Type:
        _provider_friendly_names[cls] = friendly_name
        return cls
    return decorator


def get_provider_friendly_name(provider) -> str:
    """
    Get the friendly name for a provider class or instance.

    Args:
        provider: The provider class (or an instance of it)

    Returns:
        The friendly name if decorated, otherwise the class name
    """
    provider_class = provider if isinstance(provider, type) else type(provider)
    return _provider_friendly_names.get(provider_class, provider_class.__name__)

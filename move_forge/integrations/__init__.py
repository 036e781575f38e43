"""
move-forge Integrations

Remote code generation client and ephemeral sandbox providers.

The E2B adapter lives in ``move_forge.integrations.e2b_provider`` and is
imported by the sandbox manager on first use.
"""

from .openrouter_client import OpenRouterClient
from .sandbox_provider import ProcessResult, SandboxProvider

__all__ = [
    "OpenRouterClient",
    "SandboxProvider",
    "ProcessResult",
]

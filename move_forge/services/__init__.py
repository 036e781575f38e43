"""
move_forge/services/__init__.py
Export service components.
"""

from .sandbox_manager import (
    MOVE_MANIFEST,
    CompileOutcome,
    SandboxLifecycleManager,
    classify_compile_output,
)

__all__ = [
    "SandboxLifecycleManager",
    "CompileOutcome",
    "classify_compile_output",
    "MOVE_MANIFEST",
]

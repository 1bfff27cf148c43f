"""Base classes for configuration and state models.

- Closeable Protocol for resource cleanup
- BaseCloseable for the cleanup cascade
- BaseConfig for configuration sections
- BaseState for runtime state models

Kept apart from config.py so that log.py can import them without a
circular dependency.
"""

from __future__ import annotations

import sys
from typing import Protocol, runtime_checkable

from pydantic import BaseModel

# ============================================================
# CLOSEABLE PROTOCOL AND BASE CLASS
# ============================================================

@runtime_checkable
class Closeable(Protocol):
    """Protocol for objects that support close()."""

    def close(self) -> None:
        ...


class BaseCloseable(BaseModel):
    """Model that closes its Closeable children when it is closed.

    Subclasses become context managers. On close() every field is
    visited and close() is called on children that provide it; a child
    that fails to close does not stop the others.

    State.__exit__() → Config.close() → Logger.close() → Sink.close()
    """

    def close(self):
        for field_name in self.__class__.model_fields:
            child = getattr(self, field_name, None)
            if child is None:
                continue

            if isinstance(child, Closeable):
                try:
                    child.close()
                except Exception as e:
                    print(
                        f"Warning: Error closing {field_name}: {e}",
                        file=sys.stderr,
                    )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):  # noqa: U100
        self.close()
        return False


# ============================================================
# BASE CLASSES (semantic markers for readers)
# ============================================================

class BaseConfig(BaseCloseable):
    """Configuration section loaded from YAML, env or CLI."""
    pass


class BaseState(BaseCloseable):
    """Runtime state section, mutated while a workflow runs."""
    pass


__all__ = ["Closeable", "BaseCloseable", "BaseConfig", "BaseState"]

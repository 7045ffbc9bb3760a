"""Package-shaped type library, loaded from a directory as "acme-widgets"."""
from .parts import Widget

__all__ = ["Widget"]

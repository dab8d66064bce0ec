"""
Component Registry
Maps type tags to renderers for polymorphic dispatch
"""

import threading
from typing import Any, Callable, Dict, List, Optional

from ..core import get_logger
from .types import ComponentMeta, RegistryEntry, RenderProps, Resolution

logger = get_logger(__name__)

UNKNOWN_TYPE = "unknown"


def render_unknown(props: RenderProps) -> Dict[str, Any]:
    """Fallback output for a tag with no registered renderer."""
    return {
        "type": UNKNOWN_TYPE,
        "key": props.key,
        "requested": props.type,
        "message": f'Unknown component type: "{props.type}"',
    }


class ComponentRegistry:
    """
    Registry of component renderers, keyed by type tag.

    Registering a tag that already exists replaces the earlier entry: the
    last registration wins. Plugins rely on this to override built-ins.
    Lookups never fail; unknown tags resolve to the fallback renderer.

    The map is guarded by a re-entrant lock so plugins may register from
    several threads.
    """

    def __init__(self, fallback: Optional[Callable[[RenderProps], Any]] = None):
        self._entries: Dict[str, RegistryEntry] = {}
        self._lock = threading.RLock()
        self.fallback = RegistryEntry(
            type_tag=UNKNOWN_TYPE,
            render=fallback or render_unknown,
            meta=ComponentMeta(label="Unknown", category="system"),
        )

    @staticmethod
    def _full_tag(type_tag: str, namespace: Optional[str]) -> str:
        return f"{namespace}:{type_tag}" if namespace else type_tag

    def register(
        self,
        type_tag: str,
        implementation: Callable[[RenderProps], Any],
        meta: Optional[ComponentMeta] = None,
    ) -> RegistryEntry:
        """
        Register a renderer.

        Args:
            type_tag: Tag used by schema nodes
            implementation: Callable taking RenderProps
            meta: Optional metadata; ``meta.namespace`` prefixes the tag

        Returns:
            The stored entry
        """
        if not type_tag:
            raise ValueError("type_tag is required")
        if not callable(implementation):
            raise TypeError(f"Renderer for '{type_tag}' must be callable")

        meta = meta or ComponentMeta()
        full_tag = self._full_tag(type_tag, meta.namespace)
        entry = RegistryEntry(type_tag=full_tag, render=implementation, meta=meta)

        with self._lock:
            replaced = full_tag in self._entries
            self._entries[full_tag] = entry

        if replaced:
            logger.debug("component_replaced", type=full_tag)
        else:
            logger.debug("component_registered", type=full_tag, category=meta.category)
        return entry

    def register_plugin(self, plugin: Any) -> None:
        """
        Let a component package register its renderers.

        A plugin is any object or module exposing ``register(registry)``.
        """
        register = getattr(plugin, "register", None)
        if not callable(register):
            raise TypeError(f"Plugin {plugin!r} has no register(registry) callable")
        register(self)
        logger.info("plugin_registered", plugin=getattr(plugin, "__name__", type(plugin).__name__))

    def unregister(self, type_tag: str, namespace: Optional[str] = None) -> bool:
        """Remove an entry. Returns False if it was not registered."""
        with self._lock:
            return self._entries.pop(self._full_tag(type_tag, namespace), None) is not None

    def get(self, type_tag: str, namespace: Optional[str] = None) -> Optional[RegistryEntry]:
        """
        Look up an entry, or None.

        A namespaced lookup falls back to the bare tag.
        """
        with self._lock:
            if namespace:
                entry = self._entries.get(self._full_tag(type_tag, namespace))
                if entry is not None:
                    return entry
            return self._entries.get(type_tag)

    def get_config(self, type_tag: str, namespace: Optional[str] = None) -> Optional[ComponentMeta]:
        entry = self.get(type_tag, namespace)
        return entry.meta if entry else None

    def has(self, type_tag: str, namespace: Optional[str] = None) -> bool:
        return self.get(type_tag, namespace) is not None

    def resolve(self, type_tag: str, namespace: Optional[str] = None) -> Resolution:
        """Resolve a tag to its entry, substituting the fallback for unknown tags."""
        entry = self.get(type_tag, namespace)
        if entry is None:
            return Resolution(requested=type_tag, entry=self.fallback, known=False)
        return Resolution(requested=type_tag, entry=entry, known=True)

    def list_types(self) -> List[str]:
        with self._lock:
            return list(self._entries.keys())

    def list_entries(self, category: Optional[str] = None) -> List[RegistryEntry]:
        """List entries in registration order, optionally filtered by category."""
        with self._lock:
            entries = list(self._entries.values())
        if category:
            entries = [e for e in entries if e.meta.category == category]
        return entries

    def get_stats(self) -> Dict[str, Any]:
        """Get registry statistics"""
        categories: Dict[str, int] = {}
        for entry in self.list_entries():
            cat = entry.meta.category
            categories[cat] = categories.get(cat, 0) + 1

        return {
            "total_components": len(self),
            "containers": sum(1 for e in self.list_entries() if e.meta.is_container),
            "categories": categories,
        }

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, type_tag: str) -> bool:
        return self.has(type_tag)

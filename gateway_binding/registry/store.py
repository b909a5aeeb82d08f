"""
Item Registry — the bound items, grouped by the binding providers that declared them.

Stands in for the host's binding-provider registry. The core only reads it:
it lists bound item names and looks up item configs by name. Providers and
their items are iterated in registration order so that identical state always
yields identical dispatch sequences.
"""

from typing import Dict, List, Optional

from gateway_binding.models.item import ItemConfig


class BindingProvider:
    """Holds the item configs declared by one source of bindings."""

    def __init__(self, name: str):
        self.name = name
        self._configs: Dict[str, ItemConfig] = {}

    def __repr__(self) -> str:
        return f"BindingProvider({self.name!r}, items={len(self._configs)})"

    def bind(self, item_config: ItemConfig) -> None:
        """Insert or replace the config for an item. A new item goes last."""
        self._configs[item_config.item_name] = item_config

    def unbind(self, item_name: str) -> bool:
        if item_name in self._configs:
            del self._configs[item_name]
            return True
        return False

    def item_names(self) -> List[str]:
        return list(self._configs)

    def get_config(self, item_name: str) -> Optional[ItemConfig]:
        return self._configs.get(item_name)

    def provides(self, item_name: str) -> bool:
        return item_name in self._configs


class ItemRegistry:
    """In-memory provider registry."""

    def __init__(self):
        self._providers: Dict[str, BindingProvider] = {}

    @property
    def providers(self) -> List[BindingProvider]:
        """All providers, in registration order."""
        return list(self._providers.values())

    def add_provider(self, provider: BindingProvider) -> None:
        self._providers[provider.name] = provider

    def remove_provider(self, name: str) -> Optional[BindingProvider]:
        return self._providers.pop(name, None)

    def get_provider(self, name: str) -> Optional[BindingProvider]:
        return self._providers.get(name)

    def bindings_exist(self) -> bool:
        """True when at least one provider binds at least one item."""
        return any(p.item_names() for p in self._providers.values())

    def bound_item_names(self) -> List[str]:
        """Every bound item name, provider order then item order, without duplicates."""
        names: List[str] = []
        for provider in self._providers.values():
            for item_name in provider.item_names():
                if item_name not in names:
                    names.append(item_name)
        return names

    def get_config(self, item_name: str) -> Optional[ItemConfig]:
        """Config for an item from the first provider that binds it."""
        for provider in self._providers.values():
            config = provider.get_config(item_name)
            if config is not None:
                return config
        return None

    def providers_for(self, item_name: str) -> List[BindingProvider]:
        return [p for p in self._providers.values() if p.provides(item_name)]

"""
Gateway Binding API — FastAPI endpoints.

Exposes the binding to a host over HTTP for:
- Status and forced refresh cycles
- Live reconfiguration
- Item binding (for testing without a host registry)
- User commands and device update notifications
- Recent dispatch history
"""

import os
from typing import Dict, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from gateway_binding.binding import GatewayBinding
from gateway_binding.bridge.handler import BridgeHandler
from gateway_binding.events.publisher import EventPublisher, InMemoryEventPublisher
from gateway_binding.logging_setup import setup_logging
from gateway_binding.models.bridge import BridgeConfiguration
from gateway_binding.models.item import ItemConfig, ItemType
from gateway_binding.reconciler.config import ConfigurationError
from gateway_binding.registry.store import BindingProvider, ItemRegistry

DEFAULT_PROVIDER = "default"


# --- Request/Response Models ---

class ItemBindRequest(BaseModel):
    item_name: str
    item_type: ItemType
    parameters: Dict[str, str] = {}
    provider: str = DEFAULT_PROVIDER


class CommandRequest(BaseModel):
    command: str


class UpdateRequest(BaseModel):
    state: str


# --- Application Factory ---

def create_app(
    registry: Optional[ItemRegistry] = None,
    config: Optional[BridgeConfiguration] = None,
    bridge_handler: Optional[BridgeHandler] = None,
    event_publisher: Optional[EventPublisher] = None,
    log_level: Optional[str] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    if log_level:
        setup_logging(
            log_level,
            json_format=os.environ.get("GATEWAY_BINDING_LOG_FORMAT", "text").lower() == "json",
        )

    app = FastAPI(
        title="Gateway Binding API",
        description="Refresh scheduling, command dispatch and live reconfiguration for a gateway bridge",
        version="0.1.0",
    )

    binding = GatewayBinding(
        registry=registry,
        config=config,
        bridge_handler=bridge_handler,
    )
    binding.set_event_publisher(event_publisher or InMemoryEventPublisher())
    if binding.registry.get_provider(DEFAULT_PROVIDER) is None:
        binding.add_binding_provider(BindingProvider(DEFAULT_PROVIDER))

    app.state.binding = binding

    # === BINDING ===

    @app.get("/binding/status")
    def binding_status():
        """Scheduler, configuration and registry status."""
        return binding.status().model_dump(mode="json")

    @app.post("/binding/refresh")
    def force_refresh():
        """Run one refresh cycle now."""
        return binding.tick().model_dump(mode="json")

    @app.get("/binding/config")
    def get_config():
        """Current bridge configuration, password masked."""
        return binding.reconciler.current()

    @app.put("/binding/config")
    def update_config(settings: Dict[str, Optional[str]]):
        """Apply a settings snapshot. Always forces one refresh cycle."""
        try:
            result = binding.updated(settings)
        except ConfigurationError as e:
            raise HTTPException(422, {"key": e.key, "reason": e.reason})
        return result.model_dump(mode="json")

    # === ITEMS ===

    @app.get("/items")
    def list_items():
        """All bound item configs, in refresh order."""
        configs = []
        for provider in binding.registry.providers:
            for item_name in provider.item_names():
                config = provider.get_config(item_name)
                if config is not None:
                    entry = config.model_dump(mode="json")
                    entry["provider"] = provider.name
                    configs.append(entry)
        return configs

    @app.post("/items")
    def bind_item(req: ItemBindRequest):
        """Bind an item (for testing)."""
        with binding.lock:
            provider = binding.registry.get_provider(req.provider)
            if provider is None:
                provider = BindingProvider(req.provider)
                binding.add_binding_provider(provider)
            provider.bind(ItemConfig(
                item_name=req.item_name,
                item_type=req.item_type,
                parameters=req.parameters,
            ))
        binding.all_bindings_changed(provider)
        return {"status": "bound", "item_name": req.item_name, "provider": provider.name}

    @app.delete("/items/{item_name}")
    def unbind_item(item_name: str):
        """Remove an item from every provider."""
        with binding.lock:
            removed = [p.name for p in binding.registry.providers if p.unbind(item_name)]
        if not removed:
            raise HTTPException(404, "Item not found")
        return {"status": "unbound", "item_name": item_name, "providers": removed}

    @app.post("/items/{item_name}/command")
    def send_command(item_name: str, req: CommandRequest):
        """User command toward the device."""
        result = binding.receive_command(item_name, req.command)
        if not result.forwarded:
            if result.reason == "unknown_item":
                raise HTTPException(404, "Item not found")
            if result.reason == "not_commandable":
                raise HTTPException(403, "Item is neither writable nor executable")
            raise HTTPException(503, f"Command not dispatched: {result.reason}")
        return result.model_dump(mode="json")

    @app.post("/items/{item_name}/update")
    def device_update(item_name: str, req: UpdateRequest):
        """Update notification from the device side."""
        binding.receive_update(item_name, req.state)
        return {"status": "accepted", "item_name": item_name}

    # === DISPATCH HISTORY ===

    @app.get("/dispatches")
    def recent_dispatches(limit: int = 50):
        """Recent dispatch results, oldest first."""
        return [r.model_dump(mode="json") for r in binding.dispatcher.history(limit)]

    return app


# Default application instance
app = create_app(log_level=os.environ.get("GATEWAY_BINDING_LOG_LEVEL"))

"""Per-agent bus handles sharing one store."""

import threading
from typing import Optional

from ..config.defaults import BusParams, LifebusConfig
from ..models.signal import AgentName
from ..persistence import create_store
from ..persistence.base import SignalStore
from ..utils.time import Clock, utc_now
from .bus import AgentLike, AgentSignalBus, agent_value


class SignalBusRegistry:
    """
    Keyed cache of AgentSignalBus instances.

    Owned by the composition root: repeated ``get`` calls for the same agent
    return the same handle, and every handle shares the registry's store,
    parameters and clock.
    """

    def __init__(
        self,
        store: SignalStore,
        params: Optional[BusParams] = None,
        clock: Clock = utc_now
    ) -> None:
        self.store = store
        self.params = params or BusParams()
        self.clock = clock
        self._buses: dict[str, AgentSignalBus] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: LifebusConfig, clock: Clock = utc_now) -> "SignalBusRegistry":
        """Build the configured store and a registry around it."""
        return cls(
            store=create_store(config.store, clock=clock),
            params=config.bus,
            clock=clock,
        )

    def get(self, agent_name: AgentLike) -> AgentSignalBus:
        """Return the bus for an agent, creating it on first use."""
        key = agent_value(agent_name, "agent_name")

        with self._lock:
            bus = self._buses.get(key)
            if bus is None:
                bus = AgentSignalBus(key, self.store, params=self.params, clock=self.clock)
                self._buses[key] = bus
            return bus

    def __contains__(self, agent_name: object) -> bool:
        try:
            return AgentName(agent_name).value in self._buses
        except ValueError:
            return False

    def __len__(self) -> int:
        return len(self._buses)

"""
Connection Backend Factory
"""
from typing import Callable, Dict

from callcenter.domain.interfaces.connection_backend import ConnectionBackend
from callcenter.domain.models.dialer_config import DialerConfig
from callcenter.infrastructure.telephony.simulated import SimulatedConnectionBackend

BackendBuilder = Callable[[DialerConfig], ConnectionBackend]


class ConnectionBackendFactory:
    """Builds the connection backend named by `telephony.provider`"""

    _builders: Dict[str, BackendBuilder] = {}

    @classmethod
    def create(cls, provider_name: str, config: DialerConfig) -> ConnectionBackend:
        """
        Create a connection backend

        Args:
            provider_name: Registered provider name (e.g., "simulated")
            config: Dialer configuration (answer rate, ring delay)

        Raises:
            ValueError: If provider not found
        """
        builder = cls._builders.get(provider_name)
        if builder is None:
            available = ", ".join(sorted(cls._builders)) or "None"
            raise ValueError(f"Unknown connection backend: {provider_name}. Available: {available}")
        return builder(config)

    @classmethod
    def register(cls, name: str, builder: BackendBuilder) -> None:
        """Register a builder taking the dialer config"""
        cls._builders[name] = builder

    @classmethod
    def list_providers(cls) -> list[str]:
        return list(cls._builders.keys())


ConnectionBackendFactory.register(
    "simulated",
    lambda config: SimulatedConnectionBackend(
        answer_rate=config.answer_rate,
        ring_delay_seconds=config.ring_delay_seconds,
    ),
)

"""Connection backends for the dialer"""
from callcenter.infrastructure.telephony.simulated import SimulatedConnectionBackend
from callcenter.infrastructure.telephony.factory import ConnectionBackendFactory

__all__ = [
    "SimulatedConnectionBackend",
    "ConnectionBackendFactory",
]

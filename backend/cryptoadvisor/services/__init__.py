"""
Crypto Advisor Services

Service layer containing all business logic.
Each service has a defined interface (contract) and implementation.
"""

from cryptoadvisor.services.base import (
    BaseService,
    ServiceError,
    TransportError,
    DataFormatError,
    NoDataError,
    PersistenceError,
    ConfigurationError,
)

__all__ = [
    "BaseService",
    "ServiceError",
    "TransportError",
    "DataFormatError",
    "NoDataError",
    "PersistenceError",
    "ConfigurationError",
]

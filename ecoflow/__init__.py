"""Client for the EcoFlow IoT open API."""

from .auth import (
    CyclicParameterError,
    EcoFlowSigner,
    InvalidParameterType,
    build_canonical_string,
    flatten,
    generate_signature,
)
from .client import EcoFlowClient
from .errors import EcoFlowAPIError, EcoFlowError

__all__ = [
    "CyclicParameterError",
    "EcoFlowAPIError",
    "EcoFlowClient",
    "EcoFlowError",
    "EcoFlowSigner",
    "InvalidParameterType",
    "build_canonical_string",
    "flatten",
    "generate_signature",
]

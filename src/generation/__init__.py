"""Generation package: the external text-generation boundary.

    from generation import AnthropicGateway, OfflineGateway, GenerationRequest
"""

from .credentials import (
    ChainedCredentialStore,
    CredentialStore,
    EnvCredentialStore,
    FileCredentialStore,
    default_store,
)
from .gateway import (
    AnthropicGateway,
    GenerationGateway,
    GenerationKind,
    GenerationOutcome,
    GenerationRequest,
    OfflineGateway,
)

__all__ = [
    "AnthropicGateway",
    "ChainedCredentialStore",
    "CredentialStore",
    "EnvCredentialStore",
    "FileCredentialStore",
    "GenerationGateway",
    "GenerationKind",
    "GenerationOutcome",
    "GenerationRequest",
    "OfflineGateway",
    "default_store",
]

"""
Infrastructure layer - external system integrations.
Keeps business logic clean from implementation details.
"""

from .credentials import CredentialStore
from .http_client import ApiClient, prepare_query_params

__all__ = ['ApiClient', 'CredentialStore', 'prepare_query_params']

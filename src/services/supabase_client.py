"""Supabase client factory with async context manager support."""

from typing import Optional
from supabase import create_client, Client
from supabase.client import ClientOptions
from src.utils.errors import ConfigError
import logging

logger = logging.getLogger(__name__)


def create_supabase_client(url: Optional[str], key: Optional[str]) -> Client:
    """Create a Supabase client for the service role."""
    if not url or not key:
        raise ConfigError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")

    options = ClientOptions(
        auto_refresh_token=False,
        persist_session=False,
    )

    client = create_client(url, key, options)
    logger.info("Supabase client initialized", extra={"url": url})
    return client


class SupabaseClient:
    """Async context manager scoping one Supabase operation."""

    def __init__(self, client: Client):
        self.client = client

    async def __aenter__(self) -> Client:
        return self.client

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            logger.error(
                "Supabase operation error",
                extra={"error": str(exc_val), "type": exc_type.__name__}
            )
        return False

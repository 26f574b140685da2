import logging
from typing import Optional

from supabase import create_client, Client
from portal.core.config import settings

logger = logging.getLogger(__name__)

_client: Optional[Client] = None


def create_supabase_client() -> Client:
    """
    Create and validate Supabase client connection.

    Returns:
        Client: Configured Supabase client

    Raises:
        RuntimeError: If credentials are missing or connection validation fails
    """
    if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_KEY:
        raise RuntimeError("SUPABASE_URL and SUPABASE_SERVICE_KEY must be set")

    try:
        # Service role key: attendance writes come from trusted server code
        supabase: Client = create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_KEY)

        # Validate connection by attempting a simple query
        supabase.table(settings.ATTENDANCE_TABLE).select("id").limit(1).execute()
        logger.info("Supabase connection validated successfully")

        return supabase

    except Exception as e:
        error_msg = f"Failed to connect to Supabase: {str(e)}"
        logger.error(error_msg)
        raise RuntimeError(error_msg)


def get_supabase() -> Client:
    """Get the Supabase client instance, creating it on first use."""
    global _client
    if _client is None:
        _client = create_supabase_client()
    return _client

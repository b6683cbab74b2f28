"""
Database connection management.

Provides the Supabase client singleton used to read machine, order,
fabric and dyeing batch snapshots and to write machine queues back.
"""

from supabase import create_client, Client
from functools import lru_cache
import structlog

from config.settings import settings

logger = structlog.get_logger(__name__)


class ConnectionError(Exception):
    """Failed to connect to database."""
    pass


@lru_cache()
def get_supabase_client() -> Client:
    """
    Get cached Supabase client instance.

    Call get_supabase_client.cache_clear() to reconnect.

    Raises:
        ConnectionError: If the client can't reach the machines table
    """
    try:
        logger.info(
            "connecting_to_supabase",
            url=settings.supabase_url[:30] + "..."  # Partial URL only
        )

        client = create_client(settings.supabase_url, settings.supabase_key)
        client.table("machines").select("id").limit(1).execute()

        logger.info("supabase_connected")

        return client

    except Exception as e:
        logger.error(
            "supabase_connection_failed",
            error=str(e),
            error_type=type(e).__name__
        )
        raise ConnectionError(f"Failed to connect to Supabase: {e}") from e


def check_connection() -> dict:
    """
    Check database connection health.

    Returns:
        dict: Status plus machine and fabric counts, or the error
    """
    try:
        client = get_supabase_client()

        machines = client.table("machines").select("id", count="exact").execute()
        fabrics = client.table("fabrics").select("id", count="exact").execute()

        return {
            "status": "healthy",
            "machines_count": machines.count,
            "fabrics_count": fabrics.count
        }

    except Exception as e:
        return {
            "status": "unhealthy",
            "error": str(e)
        }

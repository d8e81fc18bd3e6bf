"""
Supabase clients.

The anon client serves every request; tokens are verified through it and
rows are read and written with it. The service client exists only for the
few writes RLS forbids a user's own token from making.
"""

from supabase import create_client, Client
from functools import lru_cache
from typing import Optional
import structlog

from config.settings import settings
from exceptions import DatabaseError

logger = structlog.get_logger(__name__)


@lru_cache()
def get_supabase_client() -> Client:
    """
    Shared anon client. Cached for the process.

    Raises:
        DatabaseError: If the client can't be created
    """
    logger.info("connecting_to_supabase", url=settings.supabase_url[:30] + "...")

    try:
        client = create_client(settings.supabase_url, settings.supabase_key)
    except Exception as e:
        logger.error("supabase_connection_failed", error=str(e), error_type=type(e).__name__)
        raise DatabaseError("connect", str(e)) from e

    return client


@lru_cache()
def get_admin_client() -> Optional[Client]:
    """
    Service role client, or None when SUPABASE_SERVICE_KEY is unset.
    """
    if not settings.supabase_service_key:
        logger.debug("admin_client_not_configured")
        return None

    try:
        return create_client(settings.supabase_url, settings.supabase_service_key)
    except Exception as e:
        logger.error("admin_client_failed", error=str(e))
        return None


def check_connection() -> dict:
    """
    Health probe: count the HSC subject catalog.

    Returns:
        {"status": "healthy", "subjects_count": n} or
        {"status": "unhealthy", "error": "..."}
    """
    try:
        result = (
            get_supabase_client()
            .table("hsc_subjects")
            .select("id", count="exact")
            .execute()
        )
    except Exception as e:
        return {"status": "unhealthy", "error": str(e)}

    return {"status": "healthy", "subjects_count": result.count}


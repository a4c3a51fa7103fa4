# auradhom/core/supabase_client.py
import logging

from supabase import Client, ClientOptions, create_client

from auradhom.core.config import Settings

logger = logging.getLogger(__name__)

PLACEHOLDER_VALUES = {"YOUR_SUPABASE_URL", "YOUR_SUPABASE_ANON_KEY"}


def _backend_key(settings: Settings) -> str | None:
    # Service role key bypasses RLS; backend only.
    return settings.SUPABASE_SERVICE_ROLE_KEY or settings.SUPABASE_KEY


def is_configured(settings: Settings) -> bool:
    """
    True if Supabase URL and key are set to real values.

    Empty strings and the placeholder values shipped in sample env files
    count as "not configured".
    """
    key = _backend_key(settings)
    return bool(
        settings.SUPABASE_URL
        and key
        and settings.SUPABASE_URL not in PLACEHOLDER_VALUES
        and key not in PLACEHOLDER_VALUES
    )


def supabase_backend(settings: Settings) -> Client:
    """
    Create the Supabase client used as the durable order store.

    Requests time out after SUPABASE_TIMEOUT_SECONDS; a timeout surfaces
    as a failed write, never as a hang.

    Raises:
        RuntimeError: if Supabase is not configured.
    """
    if not is_configured(settings):
        raise RuntimeError("Missing SUPABASE_URL / SUPABASE_KEY in .env")
    return create_client(
        settings.SUPABASE_URL,
        _backend_key(settings),
        options=ClientOptions(
            postgrest_client_timeout=settings.SUPABASE_TIMEOUT_SECONDS,
        ),
    )

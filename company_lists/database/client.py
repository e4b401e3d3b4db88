"""Supabase client factory.

Configuration comes from the environment (a .env file is loaded first):
SUPABASE_URL and SUPABASE_KEY.
"""

import os
from typing import Optional

from dotenv import load_dotenv
from postgrest import AsyncPostgrestClient
from supabase import AsyncClient, acreate_client

load_dotenv()

_supabase: Optional[AsyncClient] = None


def _settings() -> tuple:
    url = os.environ.get("SUPABASE_URL")
    key = os.environ.get("SUPABASE_KEY")
    if not url or not key:
        raise RuntimeError("SUPABASE_URL and SUPABASE_KEY must be set")
    return url, key


async def get_supabase() -> AsyncClient:
    """Return the process-wide Supabase client, creating it on first use."""
    global _supabase
    if _supabase is None:
        url, key = _settings()
        _supabase = await acreate_client(url, key)
    return _supabase


def create_user_rest_client(access_token: str) -> AsyncPostgrestClient:
    """Build a PostgREST client that runs RPCs as the given user.

    The caller owns the client and must close it with ``aclose()``.
    """
    url, key = _settings()
    return AsyncPostgrestClient(
        f"{url.rstrip('/')}/rest/v1",
        headers={"apikey": key, "Authorization": f"Bearer {access_token}"},
    )

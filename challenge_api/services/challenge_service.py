"""
Challenge service — reads challenges from the upstream challenge API.

Every public function is registered in the ``service`` table, which is
built once at import time.  Calls between service functions go through
the table (``service["..."]``) rather than the raw functions so the
inner call is validated, logged and traced as a child of the outer one.
"""
import asyncio

import httpx

from challenge_api.config import settings
from challenge_api.schemas import GetChallengesArgs, ReadChallengesArgs
from challenge_api.upstream import upstream
from servicekit import NotFoundError, ServiceBuilder, service_method

builder = ServiceBuilder(settings)


async def delay(ms: int) -> None:
    with builder.span("delay"):
        await asyncio.sleep(ms / 1000)


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

@service_method(traceable=True)
async def get_m2m_token() -> str:
    """
    Return a machine-to-machine token for the upstream API.

    Token exchange is mocked: the configured token is returned after a
    simulated round trip of ``M2M_DELAY_MS``.
    """
    await delay(settings.M2M_DELAY_MS)
    return settings.M2M_TOKEN


@service_method(schema=ReadChallengesArgs, traceable=True)
async def read_challenges(user_token: str | None, page: int, per_page: int) -> list:
    try:
        return await upstream.get_json(
            settings.CHALLENGE_API_URL,
            params={"page": page, "perPage": per_page},
            token=user_token,
        )
    except httpx.HTTPStatusError as exc:
        if exc.response.status_code == 404:
            raise NotFoundError(f"No challenges on page {page}", cause=exc) from exc
        raise


@service_method(schema=GetChallengesArgs, traceable=True)
async def get_challenges(page: int = 1, per_page: int = settings.DEFAULT_PAGE_SIZE) -> list:
    """
    Return one page of challenges.

    *page* and *per_page* may arrive as strings (e.g. straight from a
    query string); the schema coerces them to ints before this body runs.
    """
    token = await service["get_m2m_token"]()
    return await service["read_challenges"](token, page, per_page)


service = builder.build_service({
    "get_m2m_token": get_m2m_token,
    "read_challenges": read_challenges,
    "get_challenges": get_challenges,
})

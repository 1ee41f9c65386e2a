import httpx
from fastapi import APIRouter

from challenge_api.services import challenge_service

router = APIRouter(prefix="/challenges", tags=["challenges"])

@router.get("")
async def list_challenges(page: str = "1", per_page: str | None = None):
    # Raw query strings are handed to the service; its schema does the coercion.
    args = [page] if per_page is None else [page, per_page]
    try:
        return await challenge_service.service["get_challenges"](*args)
    except httpx.HTTPError as exc:
        challenge_service.builder.log_full_error(exc, "GET /challenges")
        return {"success": False}

from fastapi import APIRouter, Request
from .utils import ApiSuccess


router = APIRouter()


@router.get('/health', response_model=ApiSuccess)
async def health(request: Request):
    registry = getattr(request.app.state, 'live_registry', None)
    active = registry.count() if registry is not None else 0
    return ApiSuccess(results={'status': 'OK', 'active_sessions': active})

from fastapi import APIRouter

from app.api.v1.dependency import Tokens
from app.shared.api.utils import ApiOut
from app.api.v1.schemas.rtc import CreateTokenIn, CreateTokenOut, VerifyTokenIn, VerifyTokenOut

router = APIRouter(prefix="/rtc", tags=["RTC"])


@router.post("/create_token")
async def create_token(payload: CreateTokenIn, service: Tokens) -> ApiOut[CreateTokenOut]:
    """Issue a channel-scoped RTC token for the given role."""
    issued = service.create_token(
        channel_name=payload.channel_name,
        subject_id=payload.subject_id,
        role=payload.role,
    )

    return ApiOut[CreateTokenOut](
        results=CreateTokenOut(
            token=issued.token,
            app_id=issued.app_id,
            channel_name=issued.channel_name,
            subject_id=issued.subject_id,
            role=issued.role,
            expire_at=issued.expire_at,
        )
    )


@router.post("/verify_token", tags=["Dev Only"])
async def verify_token(payload: VerifyTokenIn, service: Tokens) -> ApiOut[VerifyTokenOut]:
    """Check a token's signature and the expiry of one privilege."""
    result = service.verify(payload.token, payload.privilege)

    return ApiOut[VerifyTokenOut](results=VerifyTokenOut(result=result))

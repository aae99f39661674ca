from typing import Annotated

from fastapi import Depends, Request

from app.domain.live.session.session_registry import SessionRegistry
from app.domain.rtc.token.token_domain import TokenService

# Singleton instance; stateless apart from configuration
_token_service: TokenService | None = None


def get_token_service() -> TokenService:
    """Get the singleton TokenService instance."""
    global _token_service
    if _token_service is None:
        _token_service = TokenService()
    return _token_service


def get_session_registry(request: Request) -> SessionRegistry:
    """The registry owned by the running application (created in lifespan)."""
    return request.app.state.live_registry


Registry = Annotated[SessionRegistry, Depends(get_session_registry)]
Tokens = Annotated[TokenService, Depends(get_token_service)]

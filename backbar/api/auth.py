"""Auth dependencies: resolve the owner from a bearer JWT and hand out their session."""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError

from backbar.core.security import decode_token
from backbar.services.session import InventorySession, SessionRegistry

router = APIRouter(prefix="/session", tags=["session"])

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_owner_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    """Dependency: extract the owner id from the JWT ``sub`` claim."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception
    try:
        payload = decode_token(credentials.credentials)
    except ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except InvalidTokenError:
        raise credentials_exception

    if payload.get("type") != "access":
        raise credentials_exception

    owner_id = payload.get("sub")
    if not owner_id:
        raise credentials_exception
    return str(owner_id)


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.sessions


async def get_session(
    owner_id: str = Depends(get_current_owner_id),
    registry: SessionRegistry = Depends(get_registry),
) -> InventorySession:
    return registry.get_or_open(owner_id)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def sign_out(
    owner_id: str = Depends(get_current_owner_id),
    registry: SessionRegistry = Depends(get_registry),
):
    """Tear down the owner's session and drop their cached items."""
    await registry.close(owner_id)

"""
Request authentication dependencies.

Authoring routes carry the user access token as `t`, either in the query
string or in the JSON body. Agent routes carry the fog uuid and fog access
token as the `ID` and `Token` path segments.
"""
import json
from typing import Optional

from fastapi import Request

from fogcontroller.core.errors import AuthenticationError
from fogcontroller.core.logger import setup_logger
from fogcontroller.server.api.fog.schema import FogEntry
from fogcontroller.server.api.fog.service import FogService
from fogcontroller.server.api.user.schema import UserEntry
from fogcontroller.server.api.user.service import UserService

logger = setup_logger(__name__, include_location=True)


async def _token_from_request(request: Request) -> Optional[str]:
    token = request.query_params.get("t")
    if token:
        return token
    body = await request.body()
    if not body:
        return None
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    if isinstance(data, dict) and data.get("t"):
        return str(data["t"])
    return None


async def get_authenticated_user(request: Request) -> UserEntry:
    token = await _token_from_request(request)
    user = await UserService.get_user_by_token(token) if token else None
    if user is None:
        logger.warning(f"Rejected authoring request {request.method} {request.url.path}: invalid user token")
        raise AuthenticationError("Invalid user access token")
    return user


async def get_authenticated_fog(ID: str, Token: str) -> FogEntry:
    fog = await FogService.get_fog_by_token(ID, Token)
    if fog is None:
        logger.warning(f"Rejected agent request for fog {ID}: invalid instance token")
        raise AuthenticationError("Invalid fog instance id or token")
    return fog

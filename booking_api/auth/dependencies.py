import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from booking_api.auth import jwt_handler
from booking_api.core.errors import AuthenticationError, PermissionDeniedError
from booking_api.models.user import ROLE_DOCTOR, ROLE_PATIENT
from booking_api.services.booking_state import Identity

security = HTTPBearer(auto_error=False)

KNOWN_ROLES = {ROLE_PATIENT, ROLE_DOCTOR}


def identity_from_token(token: str) -> Identity:
    try:
        payload = jwt_handler.decode_access_token(token)
    except jwt.PyJWTError as exc:
        raise AuthenticationError("Invalid token") from exc

    subject = payload.get("sub")
    role = payload.get("role")
    if not subject or not str(subject).isdigit():
        raise AuthenticationError("Invalid token subject")
    if role not in KNOWN_ROLES:
        raise AuthenticationError("Invalid token role")
    return Identity(user_id=int(subject), role=role)


def get_current_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> Identity:
    if credentials is None:
        raise AuthenticationError("Authentication required")
    return identity_from_token(credentials.credentials)


def get_optional_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> Identity | None:
    if credentials is None:
        return None
    try:
        return identity_from_token(credentials.credentials)
    except AuthenticationError:
        return None


def require_role(*roles: str):
    def dependency(identity: Identity = Depends(get_current_identity)) -> Identity:
        if identity.role not in roles:
            raise PermissionDeniedError(f"Only {' or '.join(roles)} accounts can do this")
        return identity

    return dependency

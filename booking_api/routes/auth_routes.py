from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from booking_api.auth.dependencies import get_current_identity
from booking_api.core.errors import NotFoundError
from booking_api.database import get_db
from booking_api.models.user import User
from booking_api.services.booking_state import Identity

router = APIRouter(tags=['auth'])


@router.get("/me")
def me(identity: Identity = Depends(get_current_identity), db: Session = Depends(get_db)):
    user = db.query(User).filter(User.id == identity.user_id).first()
    if user is None:
        raise NotFoundError("User not found")
    return {"id": user.id, "email": user.email, "role": user.role, "name": user.full_name}

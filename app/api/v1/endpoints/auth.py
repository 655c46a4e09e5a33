from fastapi import APIRouter, Depends

from app.dependencies import CurrentUser, get_current_user
from app.schemas.user import UserOut

router = APIRouter()


@router.get("/user", response_model=UserOut)
def current_user(user: CurrentUser = Depends(get_current_user)):
    return {"id": user.id, "email": user.email, "name": user.name}

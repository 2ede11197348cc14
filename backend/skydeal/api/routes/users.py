"""User profile and deal preference endpoints."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from skydeal.api.deps import get_current_user
from skydeal.core.config import settings
from skydeal.db.models.subscription import PlanType
from skydeal.db.models.user import User
from skydeal.db.models.user_preference import UserPreference
from skydeal.db.session import get_db
from skydeal.schemas.preferences import PreferencesIn, PreferencesOut, ProfileOut, ProfileUpdate

router = APIRouter(prefix=f"{settings.API_V1_PREFIX}/users", tags=["users"])


def _plan_type(user: User) -> str:
    # No subscription row is treated as the free plan
    return user.subscription.plan_type if user.subscription else PlanType.free.value


def check_plan_allows(user: User, payload: PreferencesIn) -> None:
    plan = _plan_type(user)

    if plan == PlanType.free.value and payload.needs_premium:
        raise HTTPException(
            status_code=403,
            detail={
                "message": "Premium subscription required for these preferences",
                "required_plan": PlanType.premium.value,
            },
        )

    if plan != PlanType.premium_plus.value and payload.needs_premium_plus:
        raise HTTPException(
            status_code=403,
            detail={
                "message": "Premium+ subscription required for business or first class preferences",
                "required_plan": PlanType.premium_plus.value,
            },
        )


@router.get("/profile", response_model=ProfileOut)
def get_profile(user: User = Depends(get_current_user)):
    return user


@router.put("/profile", response_model=ProfileOut)
def update_profile(
    payload: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user.first_name = payload.first_name
    user.last_name = payload.last_name
    db.commit()
    db.refresh(user)
    return user


@router.get("/preferences", response_model=PreferencesOut)
def get_preferences(user: User = Depends(get_current_user)):
    if not user.preferences:
        raise HTTPException(status_code=404, detail="Preferences not found")
    return user.preferences


@router.put("/preferences", response_model=PreferencesOut)
def update_preferences(
    payload: PreferencesIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Replace the user's preferences, creating them on first save."""
    check_plan_allows(user, payload)

    pref = user.preferences
    if pref is None:
        pref = UserPreference(user_id=user.id)
        db.add(pref)

    for field, value in payload.model_dump(mode="json").items():
        setattr(pref, field, value)

    db.commit()
    db.refresh(pref)
    return pref

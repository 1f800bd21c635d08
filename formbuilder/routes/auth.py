"""Registration, login and profile endpoints."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

from formbuilder.guards.auth import get_caller, get_optional_caller
from formbuilder.logic.accounts import get_profile, login, register, update_preferences
from formbuilder.models.caller import CallerContext
from formbuilder.models.payloads import LoginModel, PreferencesModel, RegisterModel

router = APIRouter(prefix="/auth")


@router.post("/register", status_code=201, summary="Register a user", operation_id="register", tags=["Auth"])
def register_user(payload: RegisterModel, caller: Optional[CallerContext] = Depends(get_optional_caller)):
    return register(payload.name, payload.email, payload.password, is_admin=payload.is_admin, caller=caller)


@router.post("/login", summary="Exchange credentials for a bearer token", operation_id="login", tags=["Auth"])
def login_user(payload: LoginModel):
    return login(payload.email, payload.password)


@router.get("/me", summary="Current user profile", operation_id="me", tags=["Auth"])
def me(caller: CallerContext = Depends(get_caller)):
    return get_profile(caller.user_id)


@router.put("/preferences", summary="Update language and theme", operation_id="updatePreferences", tags=["Auth"])
def preferences(payload: PreferencesModel, caller: CallerContext = Depends(get_caller)):
    return update_preferences(caller, language=payload.language, theme=payload.theme)


__all__ = ["router"]

# selfauthor/api/users.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from selfauthor import persona
from selfauthor.config import Settings, get_settings
from selfauthor.utils import db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["users"])

INTERNAL = "internal error"


class LoginPayload(BaseModel):
    username: str = Field(..., min_length=1)


class LoginOut(BaseModel):
    user_id: int
    summary: Optional[str] = None


class PromptUpdatePayload(BaseModel):
    new_prompt: str


class PromptOut(BaseModel):
    prompt: str


class SummaryOut(BaseModel):
    summary: str


@router.post("/login", response_model=LoginOut)
def login(p: LoginPayload, settings: Settings = Depends(get_settings)):
    try:
        user = db.get_or_create_user(p.username, settings.default_persona)
        summary = db.find_summary(user.id)
    except db.StoreError:
        logger.exception("login failed")
        raise HTTPException(500, INTERNAL)
    return LoginOut(user_id=user.id, summary=summary)


@router.get("/prompt/{user_id}", response_class=PlainTextResponse)
def get_prompt(user_id: int, settings: Settings = Depends(get_settings)):
    try:
        text = persona.get_persona(user_id, settings.default_persona)
    except db.StoreError:
        logger.exception("prompt fetch failed for user id=%s", user_id)
        raise HTTPException(500, INTERNAL)
    if text is None:
        raise HTTPException(404, "User not found")
    return PlainTextResponse(text)


@router.post("/prompt/{user_id}", response_model=PromptOut)
def update_prompt(user_id: int, p: PromptUpdatePayload):
    try:
        updated = persona.set_persona(user_id, p.new_prompt)
    except db.StoreError:
        logger.exception("prompt update failed for user id=%s", user_id)
        raise HTTPException(500, INTERNAL)
    if not updated:
        raise HTTPException(404, "User not found")
    return PromptOut(prompt=p.new_prompt)


@router.get("/summary/{user_id}", response_model=SummaryOut)
def get_summary(user_id: int):
    try:
        summary = db.find_summary(user_id)
    except db.StoreError:
        logger.exception("summary fetch failed for user id=%s", user_id)
        raise HTTPException(500, INTERNAL)
    if summary is None:
        raise HTTPException(404, "Summary not found")
    return SummaryOut(summary=summary)

# selfauthor/api/chat.py
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from selfauthor.api.deps import get_turn_runner
from selfauthor.turns import TurnError, TurnRunner

router = APIRouter(prefix="", tags=["chat"])  # we expose /chat at root


class ChatPayload(BaseModel):
    user_id: int
    message: str


class ChatOut(BaseModel):
    reply: str
    user_id: int


@router.post("/chat", response_model=ChatOut)
async def chat(p: ChatPayload, runner: TurnRunner = Depends(get_turn_runner)):
    try:
        result = await runner.run(p.user_id, p.message)
    except TurnError as e:
        # "log in again" vs "try again later"
        if e.kind == "unauthorized":
            raise HTTPException(401, "Unknown user")
        raise HTTPException(500, "internal error")
    return ChatOut(reply=result.reply, user_id=result.user_id)

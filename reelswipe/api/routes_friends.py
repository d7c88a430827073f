"""Friend search, requests and friendships."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from reelswipe.api.deps import current_user
from reelswipe.api.schemas import FriendRequestBody
from reelswipe.api.serializers import friend_request_payload, user_payload
from reelswipe.logging import get_logger
from reelswipe.storage.db import get_db_session
from reelswipe.storage.models import User
from reelswipe.storage.repo_friends import FriendRequestError, FriendsRepo
from reelswipe.storage.repo_users import UsersRepo

logger = get_logger(__name__)

router = APIRouter(prefix="/api/friends", tags=["friends"])

MIN_QUERY_LENGTH = 2


@router.get("/search")
async def search_users(
    query: str = Query(""),
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_db_session),
) -> dict:
    query = query.strip()
    if len(query) < MIN_QUERY_LENGTH:
        return {"users": []}

    users = await UsersRepo(session).search_users(query, exclude_user_id=user.user_id)
    return {"users": [user_payload(found) for found in users]}


@router.post("/request")
async def send_request(
    body: FriendRequestBody,
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_db_session),
) -> dict:
    target = await UsersRepo(session).get_user(body.to_user_id)
    if target is None:
        raise HTTPException(status_code=404, detail="User not found")

    try:
        request = await FriendsRepo(session).send_request(user.user_id, target.user_id)
    except FriendRequestError as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info(f"Friend request {request.request_id}: {user.user_id} -> {target.user_id}")
    return {"request": friend_request_payload(request, target)}


@router.get("/list")
async def list_friends(
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_db_session),
) -> dict:
    friends = await FriendsRepo(session).list_friends(user.user_id)
    return {"friends": [user_payload(friend) for friend in friends]}


@router.get("/requests/received")
async def received_requests(
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_db_session),
) -> dict:
    requests = await FriendsRepo(session).list_received(user.user_id)
    return {"requests": [friend_request_payload(r, r.from_user) for r in requests]}


@router.get("/requests/sent")
async def sent_requests(
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_db_session),
) -> dict:
    requests = await FriendsRepo(session).list_sent(user.user_id)
    return {"requests": [friend_request_payload(r, r.to_user) for r in requests]}


def _require(changed: bool) -> dict:
    if not changed:
        raise HTTPException(status_code=404, detail="Friend request not found")
    return {"ok": True}


@router.post("/request/{request_id}/accept")
async def accept_request(
    request_id: str,
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_db_session),
) -> dict:
    return _require(await FriendsRepo(session).accept(request_id, user.user_id))


@router.post("/request/{request_id}/decline")
async def decline_request(
    request_id: str,
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_db_session),
) -> dict:
    return _require(await FriendsRepo(session).decline(request_id, user.user_id))


@router.delete("/request/{request_id}/cancel")
async def cancel_request(
    request_id: str,
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_db_session),
) -> dict:
    return _require(await FriendsRepo(session).cancel(request_id, user.user_id))


@router.delete("/remove/{friend_id}")
async def remove_friend(
    friend_id: str,
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_db_session),
) -> dict:
    removed = await FriendsRepo(session).remove_friend(user.user_id, friend_id)
    if not removed:
        raise HTTPException(status_code=404, detail="Not friends")
    return {"ok": True}

"""
Database Schemas for the video channels backend

Each Pydantic model maps to a MongoDB collection. The collection name is the lowercase of the class name.

Collections:
- User -> user
- Video -> video
- Subscription -> subscription
- Like -> like
- View -> view

Derived counters (subscribers_count, videos_count, is_subscribed, is_me, views)
are never stored; they are attached to outbound documents per request.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class User(BaseModel):
    username: str = Field(..., min_length=3, max_length=30)
    email: EmailStr
    password_hash: str = Field(..., description="Bcrypt hash")
    about: Optional[str] = None
    avatar: Optional[str] = None
    cover: Optional[str] = None


class Video(BaseModel):
    user_id: str = Field(..., description="Owner user id as string")
    title: str = Field(..., min_length=1, max_length=120)
    description: Optional[str] = None
    url: str
    thumbnail: Optional[str] = None


class Subscription(BaseModel):
    subscriber_id: str = Field(..., description="The user id of the subscriber")
    channel_id: str = Field(..., description="The user id of the channel being subscribed to")


class Like(BaseModel):
    video_id: str
    user_id: str
    value: int = Field(1, description="1 for like; -1 for dislike")


class View(BaseModel):
    video_id: str
    user_id: str


# -------------------- Request bodies --------------------
class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=30)
    email: EmailStr
    password: str


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class EditUserRequest(BaseModel):
    username: Optional[str] = Field(None, min_length=3, max_length=30)
    about: Optional[str] = None
    avatar: Optional[str] = None
    cover: Optional[str] = None


# -------------------- Document helpers --------------------
PRIVATE_USER_FIELDS = ("password_hash",)


def to_str_id(doc):
    if not doc:
        return doc
    d = {**doc}
    if d.get("_id"):
        d["id"] = str(d.pop("_id"))
    # Convert datetime to isoformat
    for k, v in list(d.items()):
        if isinstance(v, datetime):
            d[k] = v.isoformat()
    return d


def public_user(user: Optional[dict]) -> Optional[dict]:
    """Copy of a user document that is safe to return to any caller."""
    if user is None:
        return None
    return {k: v for k, v in user.items() if k not in PRIVATE_USER_FIELDS}

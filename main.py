import logging
from datetime import datetime
from typing import Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from passlib.context import CryptContext

import config
import database
from engagement import EngagementAggregator
from errors import ServiceError
from feed import FeedComposer
from profiles import ProfileComposer
from repository import MongoRepository, Repository
from saved import SavedItemsFetcher
from schemas import EditUserRequest, LoginRequest, RegisterRequest, public_user
from subscriptions import SubscriptionGraph
from views import ViewCounter

logger = logging.getLogger(__name__)

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.on_event("startup")
def on_startup_ensure_indexes():
    if database.db is not None:
        MongoRepository(database.db).ensure_indexes()


# -------------------- Helpers --------------------

def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return pwd_context.verify(password, hashed)


# -------------------- Dependencies --------------------

def get_repository() -> Repository:
    if database.db is None:
        raise HTTPException(status_code=503, detail="Database is not configured")
    return MongoRepository(database.db)


def get_current_user_id(
    x_user_id: Optional[str] = Header(default=None),
    repo: Repository = Depends(get_repository),
) -> str:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    # Validate exists
    if not repo.get_user(x_user_id):
        raise HTTPException(status_code=401, detail="Invalid user id")
    return x_user_id


def get_viewer_id(
    x_user_id: Optional[str] = Header(default=None),
    repo: Repository = Depends(get_repository),
) -> Optional[str]:
    """Like get_current_user_id, but an absent header means an anonymous viewer."""
    if not x_user_id:
        return None
    return get_current_user_id(x_user_id, repo)


def get_aggregator(repo: Repository = Depends(get_repository)) -> EngagementAggregator:
    return EngagementAggregator(repo, SubscriptionGraph(repo))


def get_profile_composer(
    repo: Repository = Depends(get_repository),
    aggregator: EngagementAggregator = Depends(get_aggregator),
) -> ProfileComposer:
    return ProfileComposer(repo, aggregator, ViewCounter(repo))


def get_feed_composer(
    repo: Repository = Depends(get_repository),
    aggregator: EngagementAggregator = Depends(get_aggregator),
) -> FeedComposer:
    return FeedComposer(repo, aggregator, ViewCounter(repo))


def get_saved_items(repo: Repository = Depends(get_repository)) -> SavedItemsFetcher:
    return SavedItemsFetcher(repo, ViewCounter(repo))


# -------------------- Basic Routes --------------------
@app.get("/")
def read_root():
    return {"message": "Video Channels Backend is running"}


@app.get("/test")
def test_database():
    info = {
        "backend": "running",
        "database_connected": False,
        "collections": []
    }
    try:
        if database.db is not None:
            info["database_connected"] = True
            info["collections"] = database.db.list_collection_names()
    except Exception as e:
        info["error"] = str(e)
    return info


# -------------------- Auth --------------------
@app.post("/auth/register")
def register(payload: RegisterRequest, repo: Repository = Depends(get_repository)):
    # Uniqueness checks
    if repo.find_user_by_email(payload.email):
        raise HTTPException(status_code=400, detail="Email already in use")
    if repo.find_user_by_username(payload.username):
        raise HTTPException(status_code=400, detail="Username already in use")

    now = datetime.utcnow()
    user = repo.create_user({
        "username": payload.username,
        "email": payload.email,
        "password_hash": hash_password(payload.password),
        "about": None,
        "avatar": None,
        "cover": None,
        "created_at": now,
        "updated_at": now,
    })
    logger.info("Registered user %s", user["id"])
    return public_user(user)


@app.post("/auth/login")
def login(payload: LoginRequest, repo: Repository = Depends(get_repository)):
    user = repo.find_user_by_email(payload.email)
    if not user:
        raise HTTPException(status_code=400, detail="Invalid credentials")
    if not verify_password(payload.password, user.get("password_hash", "")):
        raise HTTPException(status_code=400, detail="Invalid credentials")
    # MVP: return user info; frontend will store user id and send it as X-User-Id
    return public_user(user)


# -------------------- Users & Channels --------------------
@app.get("/users")
def recommended_channels(
    viewer_id: str = Depends(get_current_user_id),
    composer: FeedComposer = Depends(get_feed_composer),
):
    return {"channels": composer.recommended_channels(viewer_id)}


@app.put("/users")
def edit_user(
    payload: EditUserRequest,
    viewer_id: str = Depends(get_current_user_id),
    composer: ProfileComposer = Depends(get_profile_composer),
):
    user = composer.edit_user(viewer_id, payload.model_dump(exclude_unset=True))
    return {"user": user}


@app.get("/users/liked-videos")
def liked_videos(
    viewer_id: str = Depends(get_current_user_id),
    saved: SavedItemsFetcher = Depends(get_saved_items),
):
    return {"videos": saved.liked_videos(viewer_id)}


@app.get("/users/history")
def history(
    viewer_id: str = Depends(get_current_user_id),
    saved: SavedItemsFetcher = Depends(get_saved_items),
):
    return {"videos": saved.history(viewer_id)}


@app.get("/users/search")
def search_users(
    query: Optional[str] = None,
    viewer_id: Optional[str] = Depends(get_viewer_id),
    composer: FeedComposer = Depends(get_feed_composer),
):
    return {"users": composer.search_users(query, viewer_id)}


@app.get("/users/subscriptions")
def subscription_feed(
    viewer_id: str = Depends(get_current_user_id),
    composer: FeedComposer = Depends(get_feed_composer),
):
    return {"feed": composer.get_feed(viewer_id)}


@app.get("/users/{user_id}")
def get_profile(
    user_id: str,
    viewer_id: Optional[str] = Depends(get_viewer_id),
    composer: ProfileComposer = Depends(get_profile_composer),
):
    return {"user": composer.get_profile(user_id, viewer_id)}


@app.api_route("/users/{user_id}/toggle-subscribe", methods=["GET", "POST"])
def toggle_subscribe(
    user_id: str,
    viewer_id: str = Depends(get_current_user_id),
    repo: Repository = Depends(get_repository),
):
    SubscriptionGraph(repo).toggle(viewer_id, user_id)
    return {}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)

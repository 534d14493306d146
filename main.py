import asyncio
import logging
import os
import re
from typing import Any, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

import database
import repositories
from export import CSV_FILENAME, projects_to_csv
from media import render_media
from schemas import Connection, ConnectionRequest, Identity, Post, Project

logger = logging.getLogger(__name__)

app = FastAPI(title="52 Projects API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

ADMIN_EMAIL = "admin@52projects.com"
ADMIN_PASSWORD = "admin123"
TOTAL_WEEKS = 52

GITHUB_REPO_PATTERN = re.compile(r"https://github\.com/[\w-]+/[\w-]+/?", re.ASCII)

# Fixed sample directory for "connect with other users"
USER_DIRECTORY = [
    Identity(id="1", name="Alice Johnson", email="alice@example.com"),
    Identity(id="2", name="Bob Smith", email="bob@example.com"),
    Identity(id="3", name="Charlie Brown", email="charlie@example.com"),
    Identity(id="4", name="Diana Prince", email="diana@example.com"),
    Identity(id="5", name="Eve Wilson", email="eve@example.com"),
]


def login_delay() -> float:
    return float(os.getenv("LOGIN_DELAY_SECONDS", "1.0"))


@app.exception_handler(RuntimeError)
async def storage_unavailable(request: Request, exc: RuntimeError):
    logger.error("Storage error on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": str(exc)})


# --------- Session dependencies ---------

def current_identity() -> Identity:
    identity = repositories.sessions.get()
    if identity is None:
        raise HTTPException(401, "Not authenticated")
    return identity


def admin_identity(identity: Identity = Depends(current_identity)) -> Identity:
    if identity.role != "admin":
        logger.warning("Identity %s denied admin access", identity.id)
        raise HTTPException(403, "Admin access required")
    return identity


# --------- Request bodies ---------
class LoginIn(BaseModel):
    email: str
    password: str
    name: Optional[str] = None


class ProjectIn(BaseModel):
    title: Optional[str] = None
    githubRepo: Optional[str] = None
    description: Optional[str] = ""
    week: Any = None


class StatusIn(BaseModel):
    status: str


class PostIn(BaseModel):
    content: Optional[str] = ""
    imageUrl: Optional[str] = None
    videoUrl: Optional[str] = None
    linkUrl: Optional[str] = None


class RequestIn(BaseModel):
    toUserId: str


# --------- Root & Test ---------
@app.get("/")
def read_root():
    return {"message": "52 Projects Backend Running"}


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set",
        "database_name": None,
        "connection_status": "Not Connected",
        "slots": [],
    }
    db = database.db
    if db is None:
        return response
    response["database"] = "✅ Available"
    response["database_name"] = db.name
    response["connection_status"] = "Connected"
    try:
        response["slots"] = database.list_slot_keys()
        response["database"] = "✅ Connected & Working"
    except Exception as e:
        response["database"] = f"⚠️ Connected but Error: {str(e)[:80]}"
    return response


@app.get("/schema")
def get_schema_overview():
    return {
        "slots": [
            database.SESSION_SLOT,
            f"{database.PROJECTS_SLOT_PREFIX}<identityId>",
            database.POSTS_SLOT,
            database.CONNECTIONS_SLOT,
            database.CONNECTION_REQUESTS_SLOT,
        ]
    }


# --------- Auth ---------
@app.post("/api/auth/login")
async def login(body: LoginIn):
    # Simulated authentication: only the admin pair is ever checked.
    await asyncio.sleep(login_delay())
    is_admin = body.email == ADMIN_EMAIL and body.password == ADMIN_PASSWORD
    identity = Identity(
        email=body.email,
        name=body.name or body.email.split("@")[0],
        role="admin" if is_admin else "user",
    )
    repositories.sessions.put(identity)
    logger.info("Identity %s logged in as %s", identity.id, identity.role)
    return identity.model_dump(mode="json")


@app.post("/api/auth/signup")
async def signup(body: LoginIn):
    return await login(body)


@app.post("/api/auth/logout")
def logout():
    repositories.sessions.clear()
    return {"loggedOut": True}


@app.get("/api/auth/session")
def get_session():
    identity = repositories.sessions.get()
    return identity.model_dump(mode="json") if identity else None


# --------- Projects ---------

def parse_week(value) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise HTTPException(400, "Week must be a number between 1 and 52")
    try:
        week = int(value)
    except (TypeError, ValueError):
        raise HTTPException(400, "Week must be a number between 1 and 52")
    if not 1 <= week <= TOTAL_WEEKS:
        raise HTTPException(400, "Week must be between 1 and 52")
    return week


@app.post("/api/projects")
def submit_project(body: ProjectIn, identity: Identity = Depends(current_identity)):
    if not body.title or not body.githubRepo or body.week in (None, ""):
        logger.warning("Rejected submission from %s: missing fields", identity.id)
        raise HTTPException(400, "Please fill in all required fields")
    if not GITHUB_REPO_PATTERN.fullmatch(body.githubRepo):
        logger.warning("Rejected submission from %s: bad repo %s", identity.id, body.githubRepo)
        raise HTTPException(400, "Please enter a valid GitHub repository URL")
    project = Project(
        userId=identity.id,
        title=body.title,
        githubRepo=body.githubRepo,
        description=body.description or "",
        week=parse_week(body.week),
    )
    repositories.projects.add(project)
    logger.info("Project %s submitted by %s for week %d", project.id, identity.id, project.week)
    return project.model_dump(mode="json")


@app.get("/api/projects")
def list_my_projects(identity: Identity = Depends(current_identity)):
    return [p.model_dump(mode="json") for p in repositories.projects.list_for(identity.id)]


@app.get("/api/projects/weeks")
def week_grid(identity: Identity = Depends(current_identity)):
    own = repositories.projects.list_for(identity.id)
    cells = []
    for week in range(1, TOTAL_WEEKS + 1):
        project = next((p for p in own if p.week == week), None)
        if project is None:
            state = "empty"
        elif project.status == "Approved":
            state = "completed"
        else:
            state = "pending"
        cells.append({
            "week": week,
            "state": state,
            "project": project.model_dump(mode="json") if project else None,
        })
    return cells


@app.get("/api/dashboard")
def dashboard(identity: Identity = Depends(current_identity)):
    own = repositories.projects.list_for(identity.id)
    approved = sum(1 for p in own if p.status == "Approved")
    return {
        "total": len(own),
        "approved": approved,
        "underReview": sum(1 for p in own if p.status == "Under Review"),
        "completionRate": round(approved / TOTAL_WEEKS * 100),
    }


# --------- Admin ---------

def filter_projects(items: List[Project], q: Optional[str], week: Optional[int], status: Optional[str]) -> List[Project]:
    if q:
        needle = q.lower()
        items = [p for p in items if needle in p.title.lower() or needle in p.githubRepo.lower()]
    if week is not None:
        items = [p for p in items if p.week == week]
    if status:
        items = [p for p in items if p.status == status]
    return items


@app.get("/api/admin/projects")
def list_all_projects(q: Optional[str] = None, week: Optional[int] = None, status: Optional[str] = None, admin: Identity = Depends(admin_identity)):
    items = filter_projects(repositories.projects.list_all(), q, week, status)
    return [p.model_dump(mode="json") for p in items]


@app.put("/api/admin/projects/{project_id}/status")
def review_project(project_id: str, body: StatusIn, admin: Identity = Depends(admin_identity)):
    if body.status not in ("Approved", "Rejected"):
        raise HTTPException(400, "Invalid status")
    project = repositories.projects.find(project_id)
    if not project:
        raise HTTPException(404, "Project not found")
    # Only the owner's slot is rewritten.
    owned = repositories.projects.list_for(project.userId)
    for p in owned:
        if p.id == project_id:
            p.status = body.status
            project = p
    repositories.projects.save_all(project.userId, owned)
    logger.info("Project %s marked %s by %s", project_id, body.status, admin.id)
    return project.model_dump(mode="json")


@app.get("/api/admin/projects/export")
def export_projects(q: Optional[str] = None, week: Optional[int] = None, status: Optional[str] = None, admin: Identity = Depends(admin_identity)):
    items = filter_projects(repositories.projects.list_all(), q, week, status)
    return Response(
        content=projects_to_csv(items),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{CSV_FILENAME}"'},
    )


@app.get("/api/admin/stats")
def admin_stats(admin: Identity = Depends(admin_identity)):
    items = repositories.projects.list_all()
    return {
        "total": len(items),
        "underReview": sum(1 for p in items if p.status == "Under Review"),
        "approved": sum(1 for p in items if p.status == "Approved"),
        "rejected": sum(1 for p in items if p.status == "Rejected"),
    }


# --------- Posts ---------
@app.get("/api/posts")
def list_posts():
    return [render_media(p.model_dump(mode="json")) for p in repositories.posts.list_posts()]


@app.post("/api/posts")
def create_post(body: PostIn, identity: Identity = Depends(current_identity)):
    content = body.content or ""
    if not content.strip() and not body.imageUrl and not body.linkUrl and not body.videoUrl:
        raise HTTPException(400, "Please add some content to your post")
    post = Post(
        userId=identity.id,
        userName=identity.name,
        content=content,
        imageUrl=body.imageUrl or None,
        linkUrl=body.linkUrl or None,
        videoUrl=body.videoUrl or None,
    )
    repositories.posts.prepend(post)
    logger.info("Post %s created by %s", post.id, identity.id)
    return render_media(post.model_dump(mode="json"))


@app.post("/api/posts/{post_id}/like")
def like_post(post_id: str):
    items = repositories.posts.list_posts()
    liked = None
    for post in items:
        if post.id == post_id:
            post.likes += 1
            liked = post
    if liked is None:
        raise HTTPException(404, "Post not found")
    repositories.posts.save_all(items)
    return {"id": post_id, "likes": liked.likes}


# --------- Connections ---------

def has_pending_request(requests: List[ConnectionRequest], from_id: str, to_id: str) -> bool:
    return any(r.fromUser.id == from_id and r.toUserId == to_id and r.status == "pending" for r in requests)


@app.get("/api/users")
def search_users(search: str = "", identity: Identity = Depends(current_identity)):
    connected = {c.user.id for c in repositories.connections.list_connections()}
    requests = repositories.connections.list_requests()
    needle = search.lower()
    return [
        {**u.model_dump(mode="json", exclude={"role"}), "requestSent": has_pending_request(requests, identity.id, u.id)}
        for u in USER_DIRECTORY
        if needle in u.name.lower() and u.id != identity.id and u.id not in connected
    ]


@app.get("/api/connections")
def list_connections(identity: Identity = Depends(current_identity)):
    return [c.model_dump(mode="json") for c in repositories.connections.list_connections()]


@app.get("/api/connections/requests")
def pending_requests(identity: Identity = Depends(current_identity)):
    return [
        r.model_dump(mode="json")
        for r in repositories.connections.list_requests()
        if r.toUserId == identity.id and r.status == "pending"
    ]


@app.post("/api/connections/requests")
def send_request(body: RequestIn, identity: Identity = Depends(current_identity)):
    # Duplicate pending requests are stored as-is; clients check requestSent.
    request = ConnectionRequest(fromUser=identity, toUserId=body.toUserId)
    repositories.connections.add_request(request)
    logger.info("Connection request %s from %s to %s", request.id, identity.id, body.toUserId)
    return request.model_dump(mode="json")


def _pending_for(request_id: str, identity: Identity) -> ConnectionRequest:
    request = repositories.connections.find_request(request_id)
    if not request:
        raise HTTPException(404, "Request not found")
    if request.toUserId != identity.id:
        logger.warning("Identity %s cannot respond to request %s", identity.id, request_id)
        raise HTTPException(403, "Request is not addressed to you")
    if request.status != "pending":
        raise HTTPException(400, f"Request already {request.status}")
    return request


def _set_request_status(request_id: str, status: str) -> None:
    items = repositories.connections.list_requests()
    for r in items:
        if r.id == request_id:
            r.status = status
    repositories.connections.save_requests(items)


@app.post("/api/connections/requests/{request_id}/accept")
def accept_request(request_id: str, identity: Identity = Depends(current_identity)):
    request = _pending_for(request_id, identity)
    # Two independent slot writes; a failure between them leaves the
    # connection stored while the request is still pending.
    connection = repositories.connections.add_connection(Connection(user=request.fromUser))
    _set_request_status(request_id, "accepted")
    logger.info("Request %s accepted by %s", request_id, identity.id)
    return {"status": "accepted", "connection": connection.model_dump(mode="json")}


@app.post("/api/connections/requests/{request_id}/reject")
def reject_request(request_id: str, identity: Identity = Depends(current_identity)):
    _pending_for(request_id, identity)
    _set_request_status(request_id, "rejected")
    logger.info("Request %s rejected by %s", request_id, identity.id)
    return {"status": "rejected"}


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)

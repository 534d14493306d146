"""
Record Schemas for the 52 Projects App

Each Pydantic model corresponds to the records kept in one storage slot:
- Identity -> "user" (current session) and embedded in connection records
- Project -> "projects_<identityId>"
- Post -> "posts"
- ConnectionRequest -> "connectionRequests"
- Connection -> "connections"
"""
from typing import Literal, Optional
from datetime import datetime, timezone
from pydantic import BaseModel, Field
from bson import ObjectId

ProjectStatus = Literal['Under Review', 'Approved', 'Rejected']
RequestStatus = Literal['pending', 'accepted', 'rejected']


def new_id() -> str:
    return str(ObjectId())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ------------------ Records ------------------

class Identity(BaseModel):
    id: str = Field(default_factory=new_id, description="Opaque identity token")
    email: str
    name: str = Field(..., description="Display name")
    role: Literal['user', 'admin'] = 'user'


class Project(BaseModel):
    id: str = Field(default_factory=new_id)
    userId: str = Field(..., description="Owning identity id")
    title: str
    githubRepo: str
    description: str = ''
    week: int = Field(..., ge=1, le=52)
    status: ProjectStatus = 'Under Review'
    submissionDate: datetime = Field(default_factory=utcnow)


class Post(BaseModel):
    id: str = Field(default_factory=new_id)
    userId: str
    userName: str
    content: str = ''
    imageUrl: Optional[str] = None
    linkUrl: Optional[str] = None
    videoUrl: Optional[str] = None
    timestamp: datetime = Field(default_factory=utcnow)
    likes: int = 0
    comments: int = 0


class ConnectionRequest(BaseModel):
    id: str = Field(default_factory=new_id)
    fromUser: Identity = Field(..., description="Sender snapshot taken when the request was made")
    toUserId: str
    status: RequestStatus = 'pending'
    timestamp: datetime = Field(default_factory=utcnow)


class Connection(BaseModel):
    id: str = Field(default_factory=new_id)
    user: Identity
    status: Literal['connected'] = 'connected'

"""
Typed access to the storage slots.

Every repository reads a whole slot, and every write replaces the whole slot.
"""
from typing import List, Optional

import database
from schemas import Connection, ConnectionRequest, Identity, Post, Project


class SessionRepository:
    def get(self) -> Optional[Identity]:
        data = database.get_slot(database.SESSION_SLOT)
        if not data:
            return None
        return Identity.model_validate(data)

    def put(self, identity: Identity) -> None:
        database.set_slot(database.SESSION_SLOT, identity.model_dump(mode="json"))

    def clear(self) -> None:
        database.remove_slot(database.SESSION_SLOT)


class ProjectRepository:
    def list_for(self, identity_id: str) -> List[Project]:
        items = database.get_slot(database.projects_slot(identity_id), [])
        return [Project.model_validate(i) for i in items]

    def save_all(self, identity_id: str, projects: List[Project]) -> None:
        database.set_slot(
            database.projects_slot(identity_id),
            [p.model_dump(mode="json") for p in projects],
        )

    def add(self, project: Project) -> Project:
        projects = self.list_for(project.userId)
        projects.append(project)
        self.save_all(project.userId, projects)
        return project

    def list_all(self) -> List[Project]:
        # Membership comes from the slot naming convention, in storage order.
        result: List[Project] = []
        for key in database.list_slot_keys(database.PROJECTS_SLOT_PREFIX):
            items = database.get_slot(key, [])
            result.extend(Project.model_validate(i) for i in items)
        return result

    def find(self, project_id: str) -> Optional[Project]:
        for project in self.list_all():
            if project.id == project_id:
                return project
        return None


class PostRepository:
    def list_posts(self) -> List[Post]:
        return [Post.model_validate(i) for i in database.get_slot(database.POSTS_SLOT, [])]

    def save_all(self, posts: List[Post]) -> None:
        database.set_slot(database.POSTS_SLOT, [p.model_dump(mode="json") for p in posts])

    def prepend(self, post: Post) -> Post:
        self.save_all([post] + self.list_posts())
        return post


class ConnectionRepository:
    def list_connections(self) -> List[Connection]:
        items = database.get_slot(database.CONNECTIONS_SLOT, [])
        return [Connection.model_validate(i) for i in items]

    def save_connections(self, connections: List[Connection]) -> None:
        database.set_slot(
            database.CONNECTIONS_SLOT,
            [c.model_dump(mode="json") for c in connections],
        )

    def add_connection(self, connection: Connection) -> Connection:
        self.save_connections(self.list_connections() + [connection])
        return connection

    def list_requests(self) -> List[ConnectionRequest]:
        items = database.get_slot(database.CONNECTION_REQUESTS_SLOT, [])
        return [ConnectionRequest.model_validate(i) for i in items]

    def save_requests(self, requests: List[ConnectionRequest]) -> None:
        database.set_slot(
            database.CONNECTION_REQUESTS_SLOT,
            [r.model_dump(mode="json") for r in requests],
        )

    def add_request(self, request: ConnectionRequest) -> ConnectionRequest:
        self.save_requests(self.list_requests() + [request])
        return request

    def find_request(self, request_id: str) -> Optional[ConnectionRequest]:
        for r in self.list_requests():
            if r.id == request_id:
                return r
        return None


sessions = SessionRepository()
projects = ProjectRepository()
posts = PostRepository()
connections = ConnectionRepository()

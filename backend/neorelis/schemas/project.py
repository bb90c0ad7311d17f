from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from neorelis.models.project import ProjectStatus
from neorelis.models.project_member import ProjectRole


class ProjectCreate(BaseModel):
    label: str = Field(
        min_length=1,
        max_length=100,
        pattern=r"^[a-z0-9_-]+$",
        description="Lowercase letters, numbers, hyphens and underscores",
    )
    title: str = Field(min_length=1, max_length=250)
    description: Optional[str] = Field(None, max_length=1000)


class ProjectCreator(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    name: str


class ProjectSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    label: str
    title: str
    description: Optional[str] = None
    status: ProjectStatus
    created_at: Optional[datetime] = None
    role: Optional[ProjectRole] = None
    creator: Optional[ProjectCreator] = None


class ProjectResponse(BaseModel):
    project: ProjectSummary


class ProjectListResponse(BaseModel):
    projects: List[ProjectSummary]


class MemberAdd(BaseModel):
    user_id: str
    role: ProjectRole = ProjectRole.REVIEWER


class MemberRoleUpdate(BaseModel):
    role: ProjectRole


class MemberView(BaseModel):
    id: str
    user_id: str
    username: str
    email: str
    name: str
    role: ProjectRole
    joined_at: Optional[datetime] = None


class MemberResponse(BaseModel):
    member: MemberView


class MemberListResponse(BaseModel):
    members: List[MemberView]

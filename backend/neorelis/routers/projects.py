import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from neorelis.core.auth import get_current_user, require_manager_or_admin, require_project_access
from neorelis.core.deps import get_db, get_mail_sink
from neorelis.models.notification import NotificationType
from neorelis.models.project import Project
from neorelis.models.project_member import ProjectMember
from neorelis.models.user import User
from neorelis.schemas.auth import MessageResponse
from neorelis.schemas.project import (
    MemberAdd,
    MemberListResponse,
    MemberResponse,
    MemberRoleUpdate,
    MemberView,
    ProjectCreate,
    ProjectListResponse,
    ProjectResponse,
    ProjectSummary,
)
from neorelis.services import projects as project_service
from neorelis.services import users as user_service
from neorelis.services.email import MailSink, build_project_member_added_email, send_best_effort
from neorelis.services.notifications import notify_best_effort

logger = logging.getLogger(__name__)

router = APIRouter()


def _summary(project: Project, role=None) -> ProjectSummary:
    summary = ProjectSummary.model_validate(project)
    summary.role = role
    return summary


def _member_view(member: ProjectMember) -> MemberView:
    return MemberView(
        id=member.id,
        user_id=member.user.id,
        username=member.user.username,
        email=member.user.email,
        name=member.user.name,
        role=member.role,
        joined_at=member.added_at,
    )


@router.get("", response_model=ProjectListResponse)
def list_projects(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Projects the caller is an active member of, with the caller's role."""
    memberships = project_service.find_memberships_for_user(db, user.id)
    return ProjectListResponse(projects=[_summary(m.project, m.role) for m in memberships])


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
def create_project(data: ProjectCreate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    if project_service.find_project_by_label(db, data.label):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Project label already exists")
    project = project_service.create_project(
        db,
        label=data.label,
        title=data.title,
        description=data.description,
        creator_id=user.id,
    )
    logger.info("Project %s created by %s", project.id, user.id)
    notify_best_effort(
        db,
        user.id,
        NotificationType.PROJECT_CREATED,
        title="Project created",
        message=f'Your project "{project.title}" has been created successfully',
        data={"project_id": project.id},
    )
    return ProjectResponse(project=_summary(project))


@router.get("/{project_id}", response_model=ProjectResponse)
def get_project(
    project_id: str,
    membership: ProjectMember = Depends(require_project_access()),
    db: Session = Depends(get_db),
):
    project = project_service.get_project(db, project_id)
    if not project:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    return ProjectResponse(project=_summary(project, membership.role))


@router.get("/{project_id}/members", response_model=MemberListResponse)
def list_members(
    project_id: str,
    membership: ProjectMember = Depends(require_project_access()),
    db: Session = Depends(get_db),
):
    members = project_service.list_members(db, project_id)
    return MemberListResponse(members=[_member_view(m) for m in members])


@router.post("/{project_id}/members", response_model=MemberResponse, status_code=status.HTTP_201_CREATED)
def add_member(
    project_id: str,
    data: MemberAdd,
    response: Response,
    background_tasks: BackgroundTasks,
    membership: ProjectMember = Depends(require_manager_or_admin),
    db: Session = Depends(get_db),
    mail_sink: MailSink = Depends(get_mail_sink),
):
    """
    Add (or re-activate) a project member. The member gets an in-app
    notification and an email; neither can fail the request.
    """
    invitee = user_service.get_user(db, data.user_id)
    if not invitee:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    project = project_service.get_project(db, project_id)
    inviter = user_service.get_user(db, membership.user_id)
    project_title = project.title if project else "a project"
    inviter_name = inviter.name if inviter else "Someone"
    inviter_id = membership.user_id

    existing = project_service.find_membership(db, project_id, data.user_id)
    if existing and existing.active:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User is already a member of this project")
    if existing:
        member = project_service.reactivate_member(db, existing, data.role, inviter_id)
        response.status_code = status.HTTP_200_OK
    else:
        member = project_service.add_member(db, project_id, data.user_id, data.role, inviter_id)

    body = MemberResponse(member=_member_view(member))

    notify_best_effort(
        db,
        invitee.id,
        NotificationType.PROJECT_MEMBER_ADDED,
        title="Added to project",
        message=f'{inviter_name} added you to "{project_title}" as {data.role.value}',
        data={"project_id": project_id, "role": data.role.value, "added_by": inviter_id},
    )
    message = build_project_member_added_email(
        to_email=invitee.email,
        member_name=invitee.name,
        project_title=project_title,
        role=data.role.value,
        added_by_name=inviter_name,
    )
    background_tasks.add_task(send_best_effort, mail_sink, message)
    return body


@router.put("/{project_id}/members/{member_id}", response_model=MemberResponse)
def update_member_role(
    project_id: str,
    member_id: str,
    data: MemberRoleUpdate,
    membership: ProjectMember = Depends(require_manager_or_admin),
    db: Session = Depends(get_db),
):
    member = project_service.get_member(db, member_id)
    if not member or member.project_id != project_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Member not found")
    member = project_service.update_member_role(db, member, data.role)
    body = MemberResponse(member=_member_view(member))

    project = project_service.get_project(db, project_id)
    notify_best_effort(
        db,
        member.user_id,
        NotificationType.PROJECT_ROLE_CHANGED,
        title="Project role changed",
        message=f'Your role in "{project.title if project else "a project"}" is now {data.role.value}',
        data={"project_id": project_id, "role": data.role.value},
    )
    return body


@router.delete("/{project_id}/members/{member_id}", response_model=MessageResponse)
def remove_member(
    project_id: str,
    member_id: str,
    membership: ProjectMember = Depends(require_manager_or_admin),
    db: Session = Depends(get_db),
):
    member = project_service.get_member(db, member_id)
    if not member or member.project_id != project_id or not member.active:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Member not found")
    removed_user_id = member.user_id
    project_service.deactivate_member(db, member)

    project = project_service.get_project(db, project_id)
    notify_best_effort(
        db,
        removed_user_id,
        NotificationType.PROJECT_MEMBER_REMOVED,
        title="Removed from project",
        message=f'You have been removed from "{project.title if project else "a project"}"',
        data={"project_id": project_id},
    )
    return MessageResponse(message="Member removed successfully")

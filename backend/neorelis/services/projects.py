import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from neorelis.models.project import Project, ProjectStatus
from neorelis.models.project_member import ProjectMember, ProjectRole


def find_memberships_for_user(db: Session, user_id: str) -> List[ProjectMember]:
    return (
        db.query(ProjectMember)
        .options(joinedload(ProjectMember.project))
        .filter(ProjectMember.user_id == user_id, ProjectMember.active.is_(True))
        .order_by(ProjectMember.added_at.desc())
        .all()
    )


def find_project_by_label(db: Session, label: str) -> Optional[Project]:
    return db.query(Project).filter(Project.label == label).first()


def get_project(db: Session, project_id: str) -> Optional[Project]:
    return db.query(Project).filter(Project.id == project_id).first()


def create_project(
    db: Session, label: str, title: str, description: Optional[str], creator_id: str
) -> Project:
    """Create a project; the creator becomes its first ADMIN member."""
    project = Project(
        id=str(uuid.uuid4()),
        label=label,
        title=title,
        description=description,
        status=ProjectStatus.DRAFT,
        creator_id=creator_id,
    )
    db.add(project)
    db.flush()
    db.add(
        ProjectMember(
            id=str(uuid.uuid4()),
            project_id=project.id,
            user_id=creator_id,
            role=ProjectRole.ADMIN,
            active=True,
            added_by=creator_id,
        )
    )
    db.commit()
    db.refresh(project)
    return project


def find_membership(db: Session, project_id: str, user_id: str) -> Optional[ProjectMember]:
    """Membership row for the pair, active or not."""
    return (
        db.query(ProjectMember)
        .filter(ProjectMember.project_id == project_id, ProjectMember.user_id == user_id)
        .first()
    )


def list_members(db: Session, project_id: str) -> List[ProjectMember]:
    return (
        db.query(ProjectMember)
        .options(joinedload(ProjectMember.user))
        .filter(ProjectMember.project_id == project_id, ProjectMember.active.is_(True))
        .order_by(ProjectMember.added_at.desc())
        .all()
    )


def get_member(db: Session, member_id: str) -> Optional[ProjectMember]:
    return db.query(ProjectMember).filter(ProjectMember.id == member_id).first()


def add_member(
    db: Session, project_id: str, user_id: str, role: ProjectRole, added_by: str
) -> ProjectMember:
    member = ProjectMember(
        id=str(uuid.uuid4()),
        project_id=project_id,
        user_id=user_id,
        role=role,
        active=True,
        added_by=added_by,
    )
    db.add(member)
    db.commit()
    db.refresh(member)
    return member


def reactivate_member(db: Session, member: ProjectMember, role: ProjectRole, added_by: str) -> ProjectMember:
    member.active = True
    member.role = role
    member.added_by = added_by
    member.added_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(member)
    return member


def update_member_role(db: Session, member: ProjectMember, role: ProjectRole) -> ProjectMember:
    member.role = role
    db.commit()
    db.refresh(member)
    return member


def deactivate_member(db: Session, member: ProjectMember) -> None:
    member.active = False
    db.commit()

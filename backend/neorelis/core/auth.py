from typing import Callable, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from neorelis.core.deps import get_db
from neorelis.core.security import read_token_subject
from neorelis.models.project_member import ProjectMember, ProjectRole
from neorelis.models.user import User
from neorelis.services import projects as project_service

security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    if not credentials or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required. Please provide a valid token.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    user_id = read_token_subject(credentials.credentials)
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive",
        )
    return user


def require_project_access(*roles: ProjectRole) -> Callable[..., ProjectMember]:
    """
    Dependency factory: the caller must be an active member of the project in
    the `project_id` path parameter, with one of `roles` if any are given.
    Returns the caller's membership.
    """

    def dependency(
        project_id: str,
        user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
    ) -> ProjectMember:
        membership = project_service.find_membership(db, project_id, user.id)
        if not membership or not membership.active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have access to this project",
            )
        if roles and membership.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="This action requires one of the following roles: "
                + ", ".join(r.value for r in roles),
            )
        return membership

    return dependency


require_manager_or_admin = require_project_access(ProjectRole.ADMIN, ProjectRole.MANAGER)

from neorelis.core.database import Base
from neorelis.models.user import User
from neorelis.models.verification_code import EmailVerificationCode
from neorelis.models.protocol_draft import ProtocolDraft
from neorelis.models.notification import Notification, NotificationType
from neorelis.models.project import Project, ProjectStatus
from neorelis.models.project_member import ProjectMember, ProjectRole

__all__ = [
    "Base",
    "User",
    "EmailVerificationCode",
    "ProtocolDraft",
    "Notification",
    "NotificationType",
    "Project",
    "ProjectStatus",
    "ProjectMember",
    "ProjectRole",
]

from opshub.models.base import Base  # noqa: F401

from opshub.models.team import Team  # noqa: F401
from opshub.models.profile import Profile  # noqa: F401
from opshub.models.session_token import SessionToken  # noqa: F401
from opshub.models.server import Server  # noqa: F401
from opshub.models.proxy import Proxy  # noqa: F401
from opshub.models.rdp import Rdp  # noqa: F401
from opshub.models.seed_email import SeedEmail  # noqa: F401
from opshub.models.daily_revenue import DailyRevenue  # noqa: F401
from opshub.models.audit_log import AuditLog  # noqa: F401
from opshub.models.allowed_ip import AllowedSignupIp  # noqa: F401

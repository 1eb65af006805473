# models_bootstrap.py
from role import models as _role_models
from user import models as _user_models
from employee import models as _employee_models
from team import models as _team_models
from membership import models as _membership_models
from auditlog import models as _auditlog_models

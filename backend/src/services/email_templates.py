"""
Jinja2 templates for transactional email.

Templates are autoescaped and rendered with StrictUndefined so a missing
variable fails loudly instead of sending a half-empty email.
"""
from jinja2 import Environment, StrictUndefined

_jinja_env = Environment(undefined=StrictUndefined, autoescape=True)

REGISTRATION_SUBJECT = "Your OTP Code"
PASSWORD_RESET_SUBJECT = "Your Password Reset OTP Code"

_REGISTRATION_TEMPLATE = _jinja_env.from_string(
    """\
<p>Hi there,</p>
<p>Your OTP is: <strong>{{ code }}</strong></p>
<p>This code will expire in {{ expire_minutes }} minutes.</p>
<br/>
<p>Thanks,<br/>{{ team_name }} Team</p>
""",
)

_PASSWORD_RESET_TEMPLATE = _jinja_env.from_string(
    """\
<p>Hello,</p>
<p>Your OTP for resetting your password is: <strong>{{ code }}</strong></p>
<p>This code will expire in {{ expire_minutes }} minutes.</p>
<p>If you did not request a password reset, you can ignore this email.</p>
<br/>
<p>{{ team_name }} Team</p>
""",
)


def render_registration_email(code: str, expire_minutes: int, team_name: str) -> str:
    """Render the HTML body of the registration code email."""
    return _REGISTRATION_TEMPLATE.render(
        code=code, expire_minutes=expire_minutes, team_name=team_name,
    )


def render_password_reset_email(code: str, expire_minutes: int, team_name: str) -> str:
    """Render the HTML body of the password reset code email."""
    return _PASSWORD_RESET_TEMPLATE.render(
        code=code, expire_minutes=expire_minutes, team_name=team_name,
    )

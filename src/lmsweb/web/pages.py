"""HTML pages served by the web application."""

from jinja2 import Template

from lmsweb.auth.models import Role, User

LAYOUT_HEAD = """\
<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{{ title }}</title>
</head>
<body style="font-family:sans-serif;max-width:40rem;margin:4rem auto;text-align:center;">
"""

LANDING_PAGE = Template(LAYOUT_HEAD + """\
<h1>LMS Platform</h1>
<p>Learn from the best. Teach what you know.</p>
<p><a href="/signup">Get Started</a></p>
<p><a href="/login">I already have an account</a></p>
</body>
</html>
""", autoescape=True)

ERROR_PAGE = Template(LAYOUT_HEAD + """\
<h1 style="color:#dc2626;">Authentication Error</h1>
<p>{{ message }}</p>
<p><a href="/">Back to Home</a></p>
</body>
</html>
""", autoescape=True)

SELECT_ROLE_PAGE = Template(LAYOUT_HEAD + """\
<h1>Choose Your Role</h1>
<p>How do you want to use LMS?</p>
<form method="post" action="/select-role">
{% for role, label, hint in choices %}
<button type="submit" name="role" value="{{ role }}" style="display:block;width:100%;margin:1rem 0;padding:1rem;">
<strong>{{ label }}</strong><br><small>{{ hint }}</small>
</button>
{% endfor %}
</form>
</body>
</html>
""", autoescape=True)

COURSES_PAGE = Template(LAYOUT_HEAD + """\
<header>
<strong>LMS</strong>
<nav>
{% for href, label in nav_items %}<a href="{{ href }}">{{ label }}</a> {% endfor %}
</nav>
<span>{{ user.display_name }} ({{ user.role.value if user.role else "no role" }})</span>
<a href="/logout">Logout</a>
</header>
</body>
</html>
""", autoescape=True)

ROLE_CHOICES = [
    (Role.STUDENT.value, "Student", "Learn from courses and paths"),
    (Role.COACH.value, "Coach", "Create and sell courses"),
]

COACH_NAV = [
    ("/courses", "My Courses"),
    ("/paths", "My Paths"),
    ("/create-course", "+ Course"),
    ("/create-path", "+ Path"),
]

STUDENT_NAV = [
    ("/courses", "Browse Courses"),
    ("/paths", "Browse Paths"),
    ("/my-courses", "My Learning"),
    ("/my-paths", "My Paths"),
]


def nav_items(user: User) -> list[tuple[str, str]]:
    """Navigation entries for the user's role."""
    return COACH_NAV if user.role is Role.COACH else STUDENT_NAV


def render_landing() -> str:
    return LANDING_PAGE.render(title="LMS Platform")


def render_error(message: str) -> str:
    return ERROR_PAGE.render(title="Authentication Error", message=message)


def render_select_role() -> str:
    return SELECT_ROLE_PAGE.render(title="Choose Your Role", choices=ROLE_CHOICES)


def render_courses(user: User) -> str:
    return COURSES_PAGE.render(title="Courses", user=user, nav_items=nav_items(user))

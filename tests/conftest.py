"""
Shared pytest fixtures for the Motion Hellas PCS test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - store: DomainStore over the test session
    - make_user / make_scope / make_ticket / make_comment: ORM factories
    - world: two-team demo layout (admin, leads, engineers, scopes)
    - auth_headers / actor_for: session helpers for a given user
"""

from types import SimpleNamespace

import pytest

from pcs import create_app
from pcs.models import db as _db
from pcs.models.auth import ROLE_ADMIN, ROLE_ENGINEER, ROLE_LEAD, User
from pcs.models.project import CLIENT_ACTIVE, Client, Project, Scope
from pcs.models.ticket import Comment, Ticket
from pcs.services.credentials import hash_password
from pcs.services.session_service import Actor, sign_token
from pcs.store import DomainStore

TEST_PASSWORD = "password123"


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    application = create_app("testing")
    return application


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture()
def store():
    return DomainStore(_db.session)


# ── Factories ────────────────────────────────────────────────────────────


_password_hash = None


def _create_user(username, role=ROLE_ENGINEER, team="SOFTWARE", full_name=None):
    global _password_hash
    if _password_hash is None:
        _password_hash = hash_password(TEST_PASSWORD, rounds=4)
    user = User(
        username=username, full_name=full_name,
        password_hash=_password_hash, role=role, team=team,
    )
    _db.session.add(user)
    _db.session.commit()
    return user


def _create_client(name="Acme Corp", status=CLIENT_ACTIVE, logo_url=None):
    c = Client(name=name, status=status, logo_url=logo_url)
    _db.session.add(c)
    _db.session.commit()
    return c


def _create_project(client, code_name="MH-2025-01", contact="Jane Doe"):
    p = Project(code_name=code_name, client_id=client.id, client_contact_person=contact)
    _db.session.add(p)
    _db.session.commit()
    return p


def _create_scope(project, team="SOFTWARE", allow_cross_team_comments=False):
    s = Scope(project_id=project.id, team=team, allow_cross_team_comments=allow_cross_team_comments)
    _db.session.add(s)
    _db.session.commit()
    return s


def _create_ticket(scope, creator, title="Beam load analysis", status="PLANNING",
                   priority="P2", assignees=()):
    t = Ticket(
        scope_id=scope.id, title=title, technical_specs="",
        priority=priority, status=status, creator_id=creator.id,
    )
    t.assignees = list(assignees)
    _db.session.add(t)
    _db.session.commit()
    return t


def _create_comment(scope, author, content="Looks good"):
    c = Comment(scope_id=scope.id, author_id=author.id, content=content)
    _db.session.add(c)
    _db.session.commit()
    return c


@pytest.fixture()
def make_user():
    return _create_user


@pytest.fixture()
def make_client():
    return _create_client


@pytest.fixture()
def make_project():
    return _create_project


@pytest.fixture()
def make_scope():
    return _create_scope


@pytest.fixture()
def make_ticket():
    return _create_ticket


@pytest.fixture()
def make_comment():
    return _create_comment


@pytest.fixture()
def world():
    """Admin plus a lead and an engineer in SOFTWARE and STRUCTURAL."""
    admin = _create_user("admin", role=ROLE_ADMIN, team=None)
    sw_lead = _create_user("sw_lead", role=ROLE_LEAD, team="SOFTWARE")
    eng_1 = _create_user("eng_1", role=ROLE_ENGINEER, team="SOFTWARE")
    struct_lead = _create_user("struct_lead", role=ROLE_LEAD, team="STRUCTURAL")
    struct_eng = _create_user("struct_eng", role=ROLE_ENGINEER, team="STRUCTURAL")
    acme = _create_client()
    project = _create_project(acme)
    sw_scope = _create_scope(project, team="SOFTWARE")
    struct_scope = _create_scope(project, team="STRUCTURAL")
    return SimpleNamespace(
        admin=admin, sw_lead=sw_lead, eng_1=eng_1,
        struct_lead=struct_lead, struct_eng=struct_eng,
        client=acme, project=project,
        sw_scope=sw_scope, struct_scope=struct_scope,
    )


# ── Session helpers ──────────────────────────────────────────────────────


def _actor_for(user):
    return Actor(user_id=user.id, role=user.role, team=user.team)


@pytest.fixture()
def actor_for():
    return _actor_for


@pytest.fixture()
def auth_headers():
    """Return a builder for Bearer headers carrying ``user``'s session token."""
    def _build(user):
        return {"Authorization": f"Bearer {sign_token(user.id, user.role, user.team)}"}
    return _build

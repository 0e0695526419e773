"""
Demo data seeding.

Safe to run multiple times: existing users, the demo client and the
demo project are left alone, and scopes/tickets are only created for a
freshly inserted project.

Call this from the ``flask seed-demo`` CLI command.
"""

import logging

from pcs.models.auth import ROLE_ADMIN, ROLE_ENGINEER, ROLE_LEAD, User
from pcs.models.project import Client, Project, Scope
from pcs.models.ticket import Ticket
from pcs.services.credentials import hash_password

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "password123"
DEMO_CLIENT = "Acme Corp"
DEMO_PROJECT = "MH-2025-01"

DEMO_USERS = (
    # username, full name, role, team
    ("admin", "Platform Admin", ROLE_ADMIN, None),
    ("sw_lead", "Software Lead", ROLE_LEAD, "SOFTWARE"),
    ("eng_1", "Software Engineer", ROLE_ENGINEER, "SOFTWARE"),
    ("struct_lead", "Structural Lead", ROLE_LEAD, "STRUCTURAL"),
    ("struct_eng", "Structural Engineer", ROLE_ENGINEER, "STRUCTURAL"),
)

DEMO_TICKETS = {
    "SOFTWARE": (
        ("Setup React Frontend", "Vite + React shell with routing and auth guard.", "P1"),
        ("Integrate API", "Wire the dashboard to the project and ticket endpoints.", "P2"),
    ),
    "STRUCTURAL": (
        ("Analyze Beam Load", "Static load analysis for the main support beams.", "P0"),
    ),
}


def seed_demo(store, password=DEMO_PASSWORD):
    """Insert the demo users, client, project, scopes and tickets.

    Returns:
        dict with the number of users and tickets created.
    """
    password_hash = hash_password(password)
    users = {}
    created_users = 0
    for username, full_name, role, team in DEMO_USERS:
        user = store.get_user_by_username(username)
        if user is None:
            user = store.add(User(
                username=username, full_name=full_name,
                password_hash=password_hash, role=role, team=team,
            ))
            created_users += 1
        users[username] = user
    store.flush()

    client = store.get_client_by_name(DEMO_CLIENT)
    if client is None:
        client = store.add(Client(name=DEMO_CLIENT))
        store.flush()

    created_tickets = 0
    project = store.get_project_by_code(DEMO_PROJECT)
    if project is None:
        project = store.add(Project(
            code_name=DEMO_PROJECT, client_id=client.id,
            client_contact_person="Jane Doe", status="PLANNING",
        ))
        store.flush()
        creators = {"SOFTWARE": users["sw_lead"], "STRUCTURAL": users["struct_lead"]}
        for team, tickets in DEMO_TICKETS.items():
            scope = store.add(Scope(project_id=project.id, team=team))
            store.flush()
            for title, specs, priority in tickets:
                store.add(Ticket(
                    scope_id=scope.id, title=title, technical_specs=specs,
                    priority=priority, creator_id=creators[team].id,
                ))
                created_tickets += 1

    store.commit()
    logger.info("Seeded demo data: %d user(s), %d ticket(s)", created_users, created_tickets)
    return {"users": created_users, "tickets": created_tickets}

"""Seed data backing a fresh guest account.

Every guest gets a private project with a handful of users and issues, and is
signed in as the first user.
"""
import logging

from sqlalchemy.orm import Session

from app.db.models import Comment, Issue, Project, User
from app.services.validation import COMMENT_RULES, ISSUE_RULES, PROJECT_RULES, USER_RULES, validate_entity


logger = logging.getLogger(__name__)

GUEST_USERS = (
    ("Pickle Rick", "rick@singularity-guest.com", "https://i.ibb.co/7JM1P2r/picke-rick.jpg"),
    ("Baby Yoda", "yoda@singularity-guest.com", "https://i.ibb.co/6n0hLML/baby-yoda.jpg"),
    ("Lord Gaben", "gaben@singularity-guest.com", "https://i.ibb.co/6RJ5hq6/gaben.jpg"),
)

# (title, type, status, priority, description, estimate, reporter index, assignee indexes)
GUEST_ISSUES = (
    (
        "This is an issue of type: Task.",
        "task",
        "backlog",
        4,
        "<p>Your teams can collaborate in issues with rich text descriptions.</p>",
        8,
        1,
        (0,),
    ),
    (
        "Click on an issue to see what's behind it.",
        "task",
        "backlog",
        2,
        "<h2>Key terms to know</h2><p>An <strong>issue</strong> is a unit of work.</p>",
        5,
        2,
        (0,),
    ),
    (
        "Try dragging issues to different columns to transition their status.",
        "story",
        "backlog",
        3,
        "<p>An issue's status indicates its current place in the project's workflow.</p>",
        15,
        0,
        (),
    ),
    (
        "You can use rich text with images in issue descriptions.",
        "story",
        "selected",
        1,
        "<p>Use descriptions to capture the details of the work.</p>",
        4,
        0,
        (2,),
    ),
    (
        "Each issue can be assigned priority from lowest to highest.",
        "task",
        "selected",
        5,
        "<p>An issue's priority indicates its relative importance.</p>",
        3,
        2,
        (1,),
    ),
    (
        "An old silent pond",
        "bug",
        "inprogress",
        3,
        "<p>An old silent pond...</p><p>A frog jumps into the pond,</p><p>splash! Silence again.</p>",
        2,
        1,
        (0, 2),
    ),
    (
        "Edit the issue title and description in place.",
        "story",
        "done",
        4,
        "<p>Every edit is saved as soon as it is made.</p>",
        6,
        0,
        (1,),
    ),
)


def seed_guest_account(db: Session) -> User:
    project = Project(
        name="singularity 1.0",
        url="https://www.atlassian.com/software/jira",
        description="Plan, track, and manage your agile and software development projects.",
        category="software",
    )
    validate_entity(project, PROJECT_RULES)
    db.add(project)
    db.flush()

    users = []
    for name, email, avatar_url in GUEST_USERS:
        user = User(name=name, email=email, avatar_url=avatar_url, project_id=project.id)
        validate_entity(user, USER_RULES)
        users.append(user)
    db.add_all(users)
    db.flush()

    positions: dict[str, int] = {}
    issues = []
    for title, issue_type, status, priority, description, estimate, reporter, assignees in GUEST_ISSUES:
        positions[status] = positions.get(status, 0) + 1
        issue = Issue(
            title=title,
            type=issue_type,
            status=status,
            priority=priority,
            list_position=positions[status],
            description=description,
            estimate=estimate,
            reporter_id=users[reporter].id,
            project_id=project.id,
        )
        issue.users = [users[index] for index in assignees]
        validate_entity(issue, ISSUE_RULES)
        issues.append(issue)
    db.add_all(issues)
    db.flush()

    comment = Comment(body="Shall we pick this up next sprint?", issue_id=issues[0].id, user_id=users[2].id)
    validate_entity(comment, COMMENT_RULES)
    db.add(comment)

    db.commit()
    db.refresh(users[0])
    logger.info("Seeded guest project %s for user %s", project.id, users[0].id)
    return users[0]

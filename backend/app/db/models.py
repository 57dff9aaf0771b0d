from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base, relationship, validates

from app.services.markup import html_to_text


Base = declarative_base()

PROJECT_CATEGORIES = ("software", "marketing", "business")
ISSUE_TYPES = ("task", "bug", "story")
# Kanban column order, left to right.
ISSUE_STATUSES = ("backlog", "selected", "inprogress", "done")
ISSUE_PRIORITIES = (1, 2, 3, 4, 5)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Project(Base):
    __tablename__ = "Projects"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    url = Column(String(2000))
    description = Column(Text)
    category = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        CheckConstraint("category IN ('software', 'marketing', 'business')", name="ck_projects_category"),
    )

    issues = relationship("Issue", back_populates="project", cascade="all, delete-orphan")
    users = relationship("User", back_populates="project", order_by="User.id")


class User(Base):
    __tablename__ = "Users"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    email = Column(String(200), nullable=False)
    avatar_url = Column(String(2000))
    project_id = Column(Integer, ForeignKey("Projects.id", onupdate="CASCADE", ondelete="SET NULL"))
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    project = relationship("Project", back_populates="users")
    comments = relationship("Comment", back_populates="user")
    issues = relationship("Issue", secondary="IssueUsers", back_populates="users")


class Issue(Base):
    __tablename__ = "Issues"

    id = Column(Integer, primary_key=True)
    title = Column(String(200), nullable=False)
    type = Column(String, nullable=False)
    status = Column(String, nullable=False)
    priority = Column(Integer, nullable=False)
    list_position = Column(Float, nullable=False)
    description = Column(Text)
    description_text = Column(Text)
    estimate = Column(Integer)
    time_spent = Column(Integer)
    time_remaining = Column(Integer)
    reporter_id = Column(Integer, ForeignKey("Users.id", onupdate="CASCADE", ondelete="RESTRICT"), nullable=False)
    project_id = Column(Integer, ForeignKey("Projects.id", onupdate="CASCADE", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        CheckConstraint("type IN ('task', 'bug', 'story')", name="ck_issues_type"),
        CheckConstraint("status IN ('backlog', 'selected', 'inprogress', 'done')", name="ck_issues_status"),
        CheckConstraint("priority BETWEEN 1 AND 5", name="ck_issues_priority"),
    )

    project = relationship("Project", back_populates="issues")
    reporter = relationship("User", foreign_keys=[reporter_id])
    users = relationship("User", secondary="IssueUsers", back_populates="issues", order_by="User.id")
    comments = relationship(
        "Comment",
        back_populates="issue",
        cascade="all, delete-orphan",
        order_by="Comment.created_at.desc()",
    )

    @validates("description")
    def _project_description(self, key, value):
        self.description_text = html_to_text(value) if value is not None else None
        return value

    @property
    def user_ids(self) -> list[int]:
        return [user.id for user in self.users]


class IssueUser(Base):
    """Assignee association: one row per (issue, user) pair."""

    __tablename__ = "IssueUsers"

    issue_id = Column(Integer, ForeignKey("Issues.id", onupdate="CASCADE", ondelete="CASCADE"), primary_key=True)
    user_id = Column(Integer, ForeignKey("Users.id", onupdate="CASCADE", ondelete="CASCADE"), primary_key=True)


class Comment(Base):
    __tablename__ = "Comments"

    id = Column(Integer, primary_key=True)
    body = Column(Text, nullable=False)
    user_id = Column(Integer, ForeignKey("Users.id", onupdate="CASCADE", ondelete="CASCADE"), nullable=False)
    issue_id = Column(Integer, ForeignKey("Issues.id", onupdate="CASCADE", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    user = relationship("User", back_populates="comments")
    issue = relationship("Issue", back_populates="comments")

from app.db.models import Comment, Issue, User


def can_access_project(user: User, project_id: int) -> bool:
    return user.project_id is not None and user.project_id == project_id


def can_update_issue(user: User, issue: Issue) -> bool:
    if not can_access_project(user, issue.project_id):
        return False
    return issue.reporter_id == user.id or any(assignee.id == user.id for assignee in issue.users)


def can_update_comment(user: User, comment: Comment) -> bool:
    return comment.user_id == user.id

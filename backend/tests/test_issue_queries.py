import threading

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.errors import InvalidInputError, NotFoundError
from app.db.models import Base, Comment, Issue, IssueUser, Project, User
from app.services.issues import (
    create_issue,
    delete_issue,
    get_issue,
    list_issues,
    on_issue_description_write,
    update_issue,
)


def make_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)
    Base.metadata.create_all(bind=engine)
    return TestingSessionLocal()


def seed_project(db):
    project = Project(name="Haiku", category="software")
    other = Project(name="Other", category="business")
    db.add_all([project, other])
    db.commit()

    reporter = User(name="Basho", email="basho@test.local", project_id=project.id)
    outsider = User(name="Out", email="out@test.local", project_id=other.id)
    db.add_all([reporter, outsider])
    db.commit()
    return project, other, reporter, outsider


def add_issue(db, project, reporter, title, status="backlog", list_position=1.0, description=None):
    issue = Issue(
        title=title,
        type="task",
        status=status,
        priority=3,
        list_position=list_position,
        description=description,
        reporter_id=reporter.id,
        project_id=project.id,
    )
    db.add(issue)
    db.commit()
    return issue


def test_issues_come_back_in_column_then_position_order():
    db = make_session()
    project, _, reporter, _ = seed_project(db)
    add_issue(db, project, reporter, "done-1", status="done", list_position=1)
    add_issue(db, project, reporter, "backlog-2", status="backlog", list_position=2)
    add_issue(db, project, reporter, "selected-1", status="selected", list_position=1)
    add_issue(db, project, reporter, "backlog-0", status="backlog", list_position=0)
    add_issue(db, project, reporter, "inprogress-1", status="inprogress", list_position=-3)

    titles = [issue.title for issue in list_issues(db, project.id)]

    assert titles == ["backlog-0", "backlog-2", "selected-1", "inprogress-1", "done-1"]


def test_equal_positions_fall_back_to_insertion_order():
    db = make_session()
    project, _, reporter, _ = seed_project(db)
    first = add_issue(db, project, reporter, "first", list_position=5)
    second = add_issue(db, project, reporter, "second", list_position=5)

    assert [issue.id for issue in list_issues(db, project.id)] == [first.id, second.id]


def test_search_matches_description_text_case_insensitively():
    db = make_session()
    project, other, reporter, outsider = seed_project(db)
    pond = add_issue(
        db,
        project,
        reporter,
        "An old silent pond",
        description="<p>A frog jumps into the pond,</p><p>splash! <b>Silence</b> again.</p>",
    )
    add_issue(db, project, reporter, "Unrelated", description="<p>nothing here</p>")
    add_issue(db, other, outsider, "Silence elsewhere")

    assert [issue.id for issue in list_issues(db, project.id, "silence")] == [pond.id]
    assert [issue.id for issue in list_issues(db, project.id, "OLD SILENT")] == [pond.id]
    assert list_issues(db, project.id, "zzz-not-present") == []


def test_search_does_not_match_markup():
    db = make_session()
    project, _, reporter, _ = seed_project(db)
    add_issue(db, project, reporter, "Styled", description="<strong>bold</strong>")

    assert list_issues(db, project.id, "strong") == []
    assert len(list_issues(db, project.id, "bold")) == 1


def test_search_treats_wildcards_literally():
    db = make_session()
    project, _, reporter, _ = seed_project(db)
    percent = add_issue(db, project, reporter, "Coverage at 100% now")
    add_issue(db, project, reporter, "Coverage at 1000 lines")

    assert [issue.id for issue in list_issues(db, project.id, "100%")] == [percent.id]
    assert list_issues(db, project.id, "at_1") == []


def test_blank_search_returns_everything():
    db = make_session()
    project, _, reporter, _ = seed_project(db)
    add_issue(db, project, reporter, "a")
    add_issue(db, project, reporter, "b", list_position=2)

    assert len(list_issues(db, project.id, "   ")) == 2


def test_description_write_stores_plain_text_projection():
    db = make_session()
    project, _, reporter, _ = seed_project(db)
    issue = add_issue(db, project, reporter, "Greeting", description="<p>old</p>")

    plain = on_issue_description_write(db, issue.id, "<p>Hello <b>World</b></p>")

    assert plain == "Hello World"
    stored = db.query(Issue.description_text).filter(Issue.id == issue.id).scalar()
    assert stored == "Hello World"


def test_description_write_on_missing_issue():
    db = make_session()
    with pytest.raises(NotFoundError):
        on_issue_description_write(db, 999, "<p>x</p>")


def test_create_issue_lands_on_top_of_its_column():
    db = make_session()
    project, _, reporter, _ = seed_project(db)
    add_issue(db, project, reporter, "existing", list_position=2)

    issue = create_issue(
        db,
        project.id,
        {"title": "new", "type": "story", "status": "backlog", "priority": 2, "reporter_id": reporter.id,
         "description": "<p>Hi <i>there</i></p>", "user_ids": [reporter.id]},
    )

    assert issue.list_position == 1
    assert issue.description_text == "Hi there"
    assert issue.user_ids == [reporter.id]


def test_create_issue_in_empty_column_starts_at_one():
    db = make_session()
    project, _, reporter, _ = seed_project(db)

    issue = create_issue(
        db,
        project.id,
        {"title": "first", "type": "task", "status": "done", "priority": 1, "reporter_id": reporter.id},
    )

    assert issue.list_position == 1


def test_create_issue_rejects_invalid_values():
    db = make_session()
    project, _, reporter, _ = seed_project(db)

    with pytest.raises(InvalidInputError) as excinfo:
        create_issue(
            db,
            project.id,
            {"title": "", "type": "task", "status": "backlog", "priority": 7, "reporter_id": reporter.id},
        )

    assert set(excinfo.value.fields) == {"title", "priority"}
    assert db.query(Issue).count() == 0


def test_assignees_must_belong_to_the_project():
    db = make_session()
    project, _, reporter, outsider = seed_project(db)

    with pytest.raises(InvalidInputError) as excinfo:
        create_issue(
            db,
            project.id,
            {"title": "x", "type": "task", "status": "backlog", "priority": 3, "reporter_id": reporter.id,
             "user_ids": [outsider.id]},
        )

    assert "user_ids" in excinfo.value.fields


def test_update_issue_recomputes_projection_and_moves_on_status_change():
    db = make_session()
    project, _, reporter, _ = seed_project(db)
    issue = add_issue(db, project, reporter, "mover", status="backlog", list_position=7)
    add_issue(db, project, reporter, "resident", status="done", list_position=4)

    updated = update_issue(db, issue, {"status": "done", "description": "<p>Hello <b>World</b></p>"})

    assert updated.status == "done"
    assert updated.list_position == 3
    assert updated.description_text == "Hello World"


def test_update_issue_rolls_back_invalid_changes():
    db = make_session()
    project, _, reporter, _ = seed_project(db)
    issue = add_issue(db, project, reporter, "keep me")

    with pytest.raises(InvalidInputError):
        update_issue(db, issue, {"title": "x" * 300})

    assert db.query(Issue.title).filter(Issue.id == issue.id).scalar() == "keep me"


def test_get_issue_hides_other_projects():
    db = make_session()
    project, other, reporter, _ = seed_project(db)
    issue = add_issue(db, project, reporter, "mine")

    assert get_issue(db, issue.id, project.id).id == issue.id
    with pytest.raises(NotFoundError):
        get_issue(db, issue.id, other.id)


def test_delete_issue_cascades_comments_and_assignees():
    db = make_session()
    project, _, reporter, _ = seed_project(db)
    issue = add_issue(db, project, reporter, "doomed")
    issue.users = [reporter]
    db.add(Comment(body="bye", user_id=reporter.id, issue_id=issue.id))
    db.commit()

    delete_issue(db, issue)

    assert db.query(Issue).count() == 0
    assert db.query(Comment).count() == 0
    assert db.query(IssueUser).count() == 0
    assert db.query(User).count() == 2


def test_reporter_must_belong_to_the_project():
    db = make_session()
    project, _, _, outsider = seed_project(db)

    with pytest.raises(InvalidInputError) as excinfo:
        create_issue(
            db,
            project.id,
            {"title": "x", "type": "task", "status": "backlog", "priority": 3, "reporter_id": outsider.id},
        )

    assert set(excinfo.value.fields) == {"reporter_id"}
    assert db.query(Issue).count() == 0


def test_update_cannot_repoint_reporter_to_another_project():
    db = make_session()
    project, _, reporter, outsider = seed_project(db)
    issue = add_issue(db, project, reporter, "mine")

    with pytest.raises(InvalidInputError) as excinfo:
        update_issue(db, issue, {"reporter_id": outsider.id})

    assert "reporter_id" in excinfo.value.fields
    assert db.query(Issue.reporter_id).filter(Issue.id == issue.id).scalar() == reporter.id


def test_search_matches_non_ascii_terms_in_the_same_case():
    # SQLite's lower() only folds ASCII, so only same-case matching is portable
    db = make_session()
    project, _, reporter, _ = seed_project(db)
    cafe = add_issue(db, project, reporter, "Fix the café menu", description="<p>Crème brûlée</p>")

    assert [issue.id for issue in list_issues(db, project.id, "café")] == [cafe.id]
    assert [issue.id for issue in list_issues(db, project.id, "brûlée")] == [cafe.id]


def make_file_sessions(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'board.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


def test_concurrent_creates_never_share_a_key(tmp_path):
    SessionFactory = make_file_sessions(tmp_path)
    db = SessionFactory()
    project, _, reporter, _ = seed_project(db)
    project_id, reporter_id = project.id, reporter.id
    db.close()

    workers = 8
    barrier = threading.Barrier(workers)
    errors = []

    def create_one(number):
        session = SessionFactory()
        try:
            barrier.wait()
            create_issue(
                session,
                project_id,
                {"title": f"issue-{number}", "type": "task", "status": "backlog", "priority": 3,
                 "reporter_id": reporter_id},
            )
        except Exception as exc:
            errors.append(exc)
        finally:
            session.close()

    threads = [threading.Thread(target=create_one, args=(number,)) for number in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    assert errors == []
    db = SessionFactory()
    keys = [issue.list_position for issue in list_issues(db, project_id)]
    assert len(keys) == workers
    assert len(set(keys)) == workers


def test_status_change_lands_on_top_without_duplicating_keys():
    db = make_session()
    project, _, reporter, _ = seed_project(db)
    add_issue(db, project, reporter, "resident", status="done", list_position=1)
    first = add_issue(db, project, reporter, "first", status="backlog", list_position=1)
    second = add_issue(db, project, reporter, "second", status="backlog", list_position=2)

    update_issue(db, first, {"status": "done"})
    update_issue(db, second, {"status": "done"})

    keys = [issue.list_position for issue in list_issues(db, project.id) if issue.status == "done"]
    assert keys == [-1, 0, 1]

import pytest

from lexilearn import collection_names as names
from lexilearn.search import search_users

from tests.conftest import FIXED_NOW


@pytest.fixture
def roster(store):
    joined = FIXED_NOW.isoformat()
    store.write(names.USERS, [
        {"id": "s1", "display_name": "Alice Johnson", "email": "alice@student.com", "role": "student", "joined_at": joined},
        {"id": "s2", "display_name": "Bob Smith", "email": "bob@student.com", "role": "student", "joined_at": joined},
        {"id": "s3", "display_name": "Carol Williams", "email": "carol@student.com", "role": "student", "joined_at": joined},
        {"id": "t1", "display_name": "Sarah Anderson", "email": "teacher@school.com", "role": "teacher", "joined_at": joined},
        {"id": "t2", "display_name": "Daniel Reyes", "email": "daniel@school.com", "role": "teacher", "joined_at": joined},
        {"id": "a1", "display_name": "Admin User", "email": "admin@lexilearn.com", "role": "admin", "joined_at": joined},
    ])
    store.write(names.STUDENT_PROGRESS, {
        "s1": {"student_id": "s1", "level": "Advanced"},
        "s2": {"student_id": "s2", "level": "Beginner"},
        "s3": {"student_id": "s3", "level": "Advanced"},
    })
    store.write(names.MODULES, [
        {"id": "m1", "assigned_teacher_ids": ["t1"]},
        {"id": "m2", "assigned_teacher_ids": []},
    ])
    return store


def _ids(users):
    return [u.id for u in users]


def test_empty_search_excludes_admins(roster):
    assert _ids(search_users(roster)) == ["s1", "s2", "s3", "t1", "t2"]


def test_term_matches_name_or_email_case_insensitively(roster):
    assert _ids(search_users(roster, "SMITH")) == ["s2"]
    assert _ids(search_users(roster, "school.com")) == ["t1", "t2"]
    assert _ids(search_users(roster, "lexilearn")) == []


def test_role_and_level_filters(roster):
    result = search_users(roster, "", {"role": "student", "level": "Advanced"})

    assert _ids(result) == ["s1", "s3"]
    assert all(u.role == "student" for u in result)


def test_level_filter_never_matches_teachers(roster):
    assert _ids(search_users(roster, "", {"level": "Beginner"})) == ["s2"]


def test_all_means_no_filter(roster):
    filters = {"role": "all", "level": "all", "module": "all"}

    assert _ids(search_users(roster, "", filters)) == _ids(search_users(roster))
    assert _ids(search_users(roster, "", {"role": ""})) == _ids(search_users(roster))


def test_module_filter_matches_assigned_teachers(roster):
    assert _ids(search_users(roster, "", {"module": "m1"})) == ["t1"]
    assert _ids(search_users(roster, "", {"module": "m2"})) == []
    assert _ids(search_users(roster, "", {"module": "missing"})) == []


def test_filters_combine_with_term(roster):
    assert _ids(search_users(roster, "carol", {"role": "student", "level": "Advanced"})) == ["s3"]
    assert _ids(search_users(roster, "alice", {"role": "teacher"})) == []

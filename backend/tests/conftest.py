import json

import pytest
from fastapi.testclient import TestClient

from slotboard.main import app, settings
from slotboard.schemas.timetable import CourseDescriptor

MAJOR_COURSES = [
    {
        "id": "CSE101",
        "title": "Data Structures",
        "credits": "3학점",
        "major": "컴퓨터공학과",
        "schedule": "월1~2(303)<p>화3(202)",
        "grade": 2,
    },
    {
        "id": "CSE205",
        "title": "Operating Systems",
        "credits": "3학점",
        "major": "컴퓨터공학과",
        "schedule": "수5~7(401)",
        "grade": 3,
    },
    {
        "id": "MTH110",
        "title": "Linear Algebra",
        "credits": "2학점",
        "major": "수학과",
        "schedule": "목1~3",
        "grade": 1,
    },
]

LIBERAL_ARTS_COURSES = [
    {
        "id": "LIB001",
        "title": "Writing and Data",
        "credits": "1학점",
        "major": "교양<p>기초",
        "schedule": "금8(101)",
        "grade": 1,
    },
    {
        "id": "LIB002",
        "title": "Campus Orientation",
        "credits": "1학점",
        "major": "교양<p>기초",
        "schedule": "",
        "grade": 1,
    },
]


@pytest.fixture()
def sample_course() -> CourseDescriptor:
    return CourseDescriptor.model_validate(MAJOR_COURSES[0])


@pytest.fixture()
def catalog_files(tmp_path):
    majors = tmp_path / "schedules-majors.json"
    liberal_arts = tmp_path / "schedules-liberal-arts.json"
    majors.write_text(json.dumps(MAJOR_COURSES, ensure_ascii=False), encoding="utf-8")
    liberal_arts.write_text(json.dumps(LIBERAL_ARTS_COURSES, ensure_ascii=False), encoding="utf-8")
    return [str(majors), str(liberal_arts)]


@pytest.fixture()
def client(catalog_files, monkeypatch):
    monkeypatch.setattr(settings, "catalog_sources", catalog_files)
    monkeypatch.setattr(settings, "catalog_wait_seconds", 5.0)

    with TestClient(app) as test_client:
        yield test_client

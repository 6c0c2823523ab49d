from datetime import date

import pytest
from conftest import subject


@pytest.fixture
def student_with_results(make_student, enter_result, publish):
    make_student("BSC2024001", batch="2024-27")
    sem1 = enter_result("BSC2024001", semester=1)
    sem2 = enter_result("BSC2024001", semester=2, subjects=[subject("Maths", 15, 40, credits=4)])
    draft = enter_result("BSC2024001", semester=3)
    publish(sem1["id"])
    publish(sem2["id"])
    return {"sem1": sem1, "sem2": sem2, "draft": draft}


def check(client, **body):
    return client.post("/api/results/check", json=body)


def test_check_returns_only_published_results(client, student_with_results):
    res = check(client, rollNumber="bsc2024001", dateOfBirth="2002-05-15")
    assert res.status_code == 200, res.text

    data = res.json()["data"]
    assert data["student"] == {
        "name": "Asha Verma",
        "rollNumber": "BSC2024001",
        "department": "Science",
        "batch": "2024-27",
    }
    # newest semester first, the semester 3 draft never shows
    assert [r["semester"] for r in data["results"]] == [2, 1]
    assert all(r["isPublished"] for r in data["results"])


def test_check_matches_dob_on_the_date_only(client, student_with_results):
    res = check(client, rollNumber="BSC2024001", dateOfBirth="2002-05-15T00:00:00.000Z")
    assert res.status_code == 200


def test_check_filters_by_semester(client, student_with_results):
    res = check(client, rollNumber="BSC2024001", dateOfBirth="2002-05-15", semester=1)
    assert [r["semester"] for r in res.json()["data"]["results"]] == [1]

    res = check(client, rollNumber="BSC2024001", dateOfBirth="2002-05-15", semester=3)
    assert res.status_code == 404
    assert res.json()["message"] == "No published results found for this student"


@pytest.mark.parametrize("body,status,message", [
    ({"rollNumber": "BSC2024001"}, 400, "Please provide Roll Number and Date of Birth"),
    ({"dateOfBirth": "2002-05-15"}, 400, "Please provide Roll Number and Date of Birth"),
    ({"rollNumber": "ZZZ999", "dateOfBirth": "2002-05-15"}, 404, "Student not found"),
    ({"rollNumber": "BSC2024001", "dateOfBirth": "2002-05-16"}, 401, "Invalid Date of Birth"),
    ({"rollNumber": "BSC2024001", "dateOfBirth": "not-a-date"}, 401, "Invalid Date of Birth"),
])
def test_check_errors(client, student_with_results, body, status, message):
    res = client.post("/api/results/check", json=body)
    assert res.status_code == status
    assert res.json() == {"success": False, "message": message}


def test_check_with_only_drafts_is_not_found(client, make_student, enter_result):
    make_student("BSC2024002")
    enter_result("BSC2024002")
    res = check(client, rollNumber="BSC2024002", dateOfBirth="2002-05-15")
    assert res.status_code == 404


def test_unpublishing_hides_the_result_again(client, student_with_results, publish):
    publish(student_with_results["sem2"]["id"])
    res = check(client, rollNumber="BSC2024001", dateOfBirth="2002-05-15")
    assert [r["semester"] for r in res.json()["data"]["results"]] == [1]


def student_login(client, roll_number="BSC2024001", password="20020515"):
    res = client.post("/api/student/login", json={"identifier": roll_number, "password": password})
    assert res.status_code == 200, res.text
    return {"Authorization": f"Bearer {res.json()['token']}"}


def test_my_results_are_published_only(client, student_with_results):
    headers = student_login(client)

    res = client.get("/api/results/my", headers=headers)
    assert res.status_code == 200
    assert [r["semester"] for r in res.json()["data"]["results"]] == [2, 1]

    sem1_id = student_with_results["sem1"]["id"]
    res = client.get(f"/api/results/my/{sem1_id}", headers=headers)
    assert res.status_code == 200
    assert res.json()["data"]["result"]["id"] == sem1_id

    draft_id = student_with_results["draft"]["id"]
    assert client.get(f"/api/results/my/{draft_id}", headers=headers).status_code == 404


def test_my_result_of_another_student_is_not_found(client, student_with_results, make_student, enter_result, publish):
    make_student("BSC2024002", dob=date(2001, 1, 1))
    other = enter_result("BSC2024002")
    publish(other["id"])

    headers = student_login(client)
    assert client.get(f"/api/results/my/{other['id']}", headers=headers).status_code == 404


def test_my_results_require_student_token(client, admin_headers):
    assert client.get("/api/results/my").status_code == 401
    # an admin token carries the wrong role
    assert client.get("/api/results/my", headers=admin_headers).status_code == 401


def test_registered_datetime_dob_is_stored_as_its_utc_date(client, admin_headers, enter_result, publish):
    res = client.post("/api/admin/students/register", headers=admin_headers, json={
        "rollNumber": "BSC2024050",
        "firstName": "Kiran",
        "lastName": "Rao",
        "dateOfBirth": "2002-05-15T18:30:00Z",
        "gender": "Female",
        "department": "Science",
    })
    assert res.status_code == 201, res.text
    assert res.json()["data"]["dateOfBirth"] == "2002-05-15"

    publish(enter_result("BSC2024050")["id"])

    assert check(client, rollNumber="BSC2024050", dateOfBirth="2002-05-15").status_code == 200
    res = check(client, rollNumber="BSC2024050", dateOfBirth="2002-05-16")
    assert res.status_code == 401
    assert res.json()["message"] == "Invalid Date of Birth"


def test_auto_registered_offset_dob_is_reduced_to_utc(client, admin_headers, publish):
    # 02:00 in +05:30 is still the previous day in UTC
    res = client.post("/api/results/manual", headers=admin_headers, json={
        "rollNumber": "BA2024090",
        "semester": 1,
        "academicYear": "2024-25",
        "dateOfBirth": "2003-01-10T02:00:00+05:30",
        "subjects": [subject("Hindi", 25, 50)],
    })
    assert res.status_code == 201, res.text
    publish(res.json()["data"]["id"])

    assert check(client, rollNumber="BA2024090", dateOfBirth="2003-01-09").status_code == 200
    assert check(client, rollNumber="BA2024090", dateOfBirth="2003-01-10").status_code == 401

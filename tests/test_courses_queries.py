from conftest import subject

COURSE = {
    "courseCode": "phy 101",
    "courseName": "Physics I",
    "credits": 3,
    "department": "Science",
    "semester": 1,
    "maxMarks": 50,
}


def create_course(client, headers, **overrides):
    res = client.post("/api/courses", headers=headers, json={**COURSE, **overrides})
    assert res.status_code == 201, res.text
    return res.json()["data"]


def test_course_crud(client, admin_headers):
    course = create_course(client, admin_headers)
    assert course["courseCode"] == "PHY101"
    assert course["courseType"] == "Theory"

    create_course(client, admin_headers, courseCode="BA101", courseName="Hindi Literature", department="Arts")

    science = client.get("/api/courses?department=Science", headers=admin_headers).json()
    assert [c["courseCode"] for c in science["data"]] == ["PHY101"]

    res = client.put(f"/api/courses/{course['id']}", headers=admin_headers, json={"credits": 4, "isActive": False})
    assert res.status_code == 200, res.text
    assert res.json()["data"]["credits"] == 4

    inactive = client.get("/api/courses?active=false", headers=admin_headers).json()
    assert [c["courseCode"] for c in inactive["data"]] == ["PHY101"]

    assert client.delete(f"/api/courses/{course['id']}", headers=admin_headers).status_code == 200
    assert client.delete(f"/api/courses/{course['id']}", headers=admin_headers).status_code == 404


def test_duplicate_course_code(client, admin_headers):
    create_course(client, admin_headers)
    res = client.post("/api/courses", headers=admin_headers, json=COURSE)
    assert res.status_code == 409


def test_course_update_rejects_code_change(client, admin_headers):
    course = create_course(client, admin_headers)
    res = client.put(f"/api/courses/{course['id']}", headers=admin_headers, json={"courseCode": "XYZ"})
    assert res.status_code == 400


def test_result_subject_links_catalog_course(client, admin_headers, make_student, enter_result):
    course = create_course(client, admin_headers)
    make_student("BSC2024001")

    result = enter_result("BSC2024001", subjects=[subject("Physics I", 10, 30, code="phy101")])
    row = result["subjects"][0]
    assert row["courseId"] == course["id"]
    assert row["credits"] == 3
    assert row["marks"]["maxMarks"] == 50
    assert row["grade"] == "A+"
    assert result["sgpa"] == 9.0

    # deleting the course keeps the stored subject row
    client.delete(f"/api/courses/{course['id']}", headers=admin_headers)
    stored = client.get(f"/api/admin/results/{result['id']}", headers=admin_headers).json()["data"]
    assert stored["subjects"][0]["courseCode"] == "PHY101"
    assert stored["subjects"][0]["courseId"] is None


def student_headers(client, roll_number="BSC2024001", password="20020515"):
    res = client.post("/api/student/login", json={"rollNumber": roll_number, "password": password})
    assert res.status_code == 200, res.text
    return {"Authorization": f"Bearer {res.json()['token']}"}


def test_help_desk_flow(client, admin_headers, make_student):
    make_student("BSC2024001")
    make_student("BSC2024002")
    mine = student_headers(client)
    other = student_headers(client, "BSC2024002")

    res = client.post("/api/queries", headers=mine, json={
        "subject": "Marks missing",
        "message": "My Chemistry practical marks are not shown.",
    })
    assert res.status_code == 201, res.text
    query = res.json()["data"]
    assert query["status"] == "Open"

    client.post("/api/queries", headers=other, json={"subject": "Name spelling", "message": "Please fix my name."})

    my_list = client.get("/api/queries/my", headers=mine).json()
    assert [q["id"] for q in my_list["data"]] == [query["id"]]

    open_queries = client.get("/api/queries/admin/all?status=Open", headers=admin_headers).json()
    assert open_queries["count"] == 2

    res = client.put(f"/api/queries/{query['id']}/reply", headers=admin_headers, json={"reply": "Updated, please check again."})
    assert res.status_code == 200, res.text
    replied = res.json()["data"]
    assert replied["status"] == "Resolved"
    assert replied["adminReply"] == "Updated, please check again."
    assert replied["student"]["rollNumber"] == "BSC2024001"

    resolved = client.get("/api/queries/admin/all?status=Resolved", headers=admin_headers).json()
    assert [q["id"] for q in resolved["data"]] == [query["id"]]


def test_help_desk_validation(client, admin_headers, make_student):
    make_student("BSC2024001")
    headers = student_headers(client)

    assert client.post("/api/queries", headers=headers, json={"subject": "", "message": "x"}).status_code == 400
    assert client.post("/api/queries", headers=headers, json={"subject": "x" * 101, "message": "x"}).status_code == 400
    assert client.get("/api/queries/admin/all?status=Pending", headers=admin_headers).status_code == 400
    assert client.put("/api/queries/77/reply", headers=admin_headers, json={"reply": "hi"}).status_code == 404
    # students cannot see the admin queue
    assert client.get("/api/queries/admin/all", headers=headers).status_code == 401

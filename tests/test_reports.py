from conftest import subject


def publish_semester(client, headers, semester=1, **extra):
    res = client.post("/api/admin/results/publish/bulk", headers=headers, json={
        "semester": semester, "action": "publish", **extra,
    })
    assert res.status_code == 200, res.text


def test_merit_list_order(client, admin_headers, enter_result, make_student):
    # (roll, total out of 100, credits)
    cohort = [
        ("R4", 99, 0),   # no credits -> no SGPA, ranked last
        ("R2", 85, 4),   # A+ 9, 85%
        ("R1", 95, 4),   # O 10
        ("R3", 88, 4),   # A+ 9, 88% beats R2 on percentage
    ]
    for roll, total, credits in cohort:
        make_student(roll)
        enter_result(roll, subjects=[subject("Physics", 0, total, credits=credits)])
    publish_semester(client, admin_headers)

    res = client.get("/api/admin/results/merit-list?semester=1", headers=admin_headers)
    assert res.status_code == 200, res.text
    assert [r["rollNumber"] for r in res.json()["data"]] == ["R1", "R3", "R2", "R4"]

    top_two = client.get("/api/admin/results/merit-list?semester=1&limit=2", headers=admin_headers).json()
    assert [r["rollNumber"] for r in top_two["data"]] == ["R1", "R3"]


def test_merit_list_ties_fall_back_to_roll_number(client, admin_headers, enter_result, make_student):
    for roll in ("B2", "B1"):
        make_student(roll)
        enter_result(roll, subjects=[subject("Physics", 10, 70, credits=4)])
    publish_semester(client, admin_headers)

    res = client.get("/api/admin/results/merit-list?semester=1", headers=admin_headers)
    assert [r["rollNumber"] for r in res.json()["data"]] == ["B1", "B2"]


def test_merit_list_skips_drafts_and_other_departments(client, admin_headers, enter_result, make_student):
    make_student("S1", department="Science")
    make_student("A1", department="Arts")
    make_student("S2", department="Science")
    for roll in ("S1", "A1"):
        enter_result(roll, subjects=[subject("Physics", 20, 60, credits=4)])
    publish_semester(client, admin_headers)
    enter_result("S2", subjects=[subject("Physics", 30, 69, credits=4)])  # draft

    res = client.get("/api/admin/results/merit-list?semester=1&department=Science", headers=admin_headers)
    assert [r["rollNumber"] for r in res.json()["data"]] == ["S1"]


def test_merit_list_requires_semester(client, admin_headers):
    res = client.get("/api/admin/results/merit-list", headers=admin_headers)
    assert res.status_code == 400
    assert client.get("/api/admin/results/gazette", headers=admin_headers).status_code == 400


def test_gazette_is_sorted_by_roll_number(client, admin_headers, enter_result, make_student):
    for roll in ("G3", "G1", "G2"):
        make_student(roll)
        enter_result(roll)
    publish_semester(client, admin_headers)

    res = client.get("/api/admin/results/gazette?semester=1", headers=admin_headers)
    assert res.status_code == 200
    body = res.json()
    assert body["count"] == 3
    assert [r["student"]["rollNumber"] for r in body["data"]] == ["G1", "G2", "G3"]


def test_published_and_unpublished_views(client, admin_headers, enter_result, make_student, publish):
    make_student("V1")
    first = enter_result("V1", semester=1)
    second = enter_result("V1", semester=2)
    publish(first["id"])

    published = client.get("/api/admin/results/published", headers=admin_headers).json()["data"]
    unpublished = client.get("/api/admin/results/unpublished?semester=2", headers=admin_headers).json()["data"]
    assert [r["id"] for r in published] == [first["id"]]
    assert [r["id"] for r in unpublished] == [second["id"]]


def test_stats(client, admin_headers, enter_result, make_student, publish):
    make_student("T1")
    make_student("T2")
    publish(enter_result("T1")["id"])
    enter_result("T2")

    res = client.get("/api/admin/results/stats", headers=admin_headers)
    assert res.json()["data"] == {
        "totalStudents": 2,
        "totalResults": 2,
        "publishedResults": 1,
        "pendingResults": 1,
    }


def test_activity_groups_publish_events(client, admin_headers, enter_result, make_student):
    for roll in ("C1", "C2"):
        make_student(roll, department="Commerce")
        enter_result(roll, semester=3)
    publish_semester(client, admin_headers, semester=3)

    activity = client.get("/api/admin/results/activity", headers=admin_headers).json()["data"]
    assert len(activity) == 1
    event = activity[0]
    assert event["type"] == "publish"
    assert event["description"] == "Published Commerce Results"
    assert event["meta"].startswith("Semester 3")
    assert event["meta"].endswith("2 Students")
    assert event["timestamp"] is not None


def test_reports_require_admin(client):
    for path in ("merit-list?semester=1", "gazette?semester=1", "published", "unpublished", "stats", "activity"):
        assert client.get(f"/api/admin/results/{path}").status_code == 401

from models.courses import Course
from models.results import Result
from models.students import Student
from routers.result_upload import classify_header, parse_marks_cell, subject_code

SHEET = (
    "Government Degree College - Semester Results,,,,,\n"
    "Roll No,Student Name,DOB,Physics,Chemistry,Lab\n"
    "BSC2024001,Asha Verma,,45,40,20/50\n"
    "bsc2024201,Nikhil Das,2003-04-12,30,AB,40/50\n"
    "BSC2024202,Missing Birthday,,50,50,\n"
    "BSC2024001,Asha Verma,,10,10,\n"
    "BSC2024203,Negative Marks,2003-01-01,-5,10,\n"
    ",,,,,\n"
    "BSC2024204,No Marks,2003-01-01,,,\n"
)


def upload(client, headers, content, filename="results.csv", **form):
    data = {"semester": "1", "academicYear": "2024-25", **form}
    data = {k: v for k, v in data.items() if v is not None}
    files = {"file": (filename, content.encode("utf-8"), "text/csv")}
    return client.post("/api/results/upload", headers=headers, data=data, files=files)


def test_header_classification():
    assert classify_header("Roll No") == "roll_number"
    assert classify_header("Enrollment No") == "enrollment_number"
    assert classify_header("D.O.B") == "date_of_birth"
    assert classify_header("Sem") == "semester"
    assert classify_header("Academic Year") == "academic_year"
    assert classify_header("Exam Type") == "exam_type"
    assert classify_header("Father's Name") == "other"
    assert classify_header("Physics") == "subject"
    assert classify_header(None) is None


def test_marks_cells():
    assert parse_marks_cell("45") == ("45", None)
    assert parse_marks_cell("38 / 50") == ("38", "50")
    assert parse_marks_cell("AB") is None
    assert parse_marks_cell(None) is None
    assert subject_code("Phy-101 (Theory)") == "PHY101TH"


def test_upload_results(client, admin_headers, make_student, db):
    make_student("BSC2024001")

    res = upload(client, admin_headers, SHEET)
    assert res.status_code == 200, res.text
    body = res.json()
    assert body["totalRows"] == 6
    assert body["uploadedCount"] == 2
    assert body["studentsCreated"] == 1
    assert body["errorCount"] == 4

    errors = {e["row"]: e for e in body["errors"]}
    assert errors[5]["error"].startswith("Student not found")
    assert errors[6]["isDuplicate"] is True
    assert errors[7]["error"] == "Marks cannot be negative"
    assert errors[9]["error"] == "No subject marks found"

    asha = db.query(Result).filter(Result.roll_number == "BSC2024001").one()
    assert asha.is_published is False
    assert (asha.semester, asha.academic_year, asha.exam_type) == (1, "2024-25", "Regular")
    assert (asha.total_marks, asha.max_marks) == (105, 250)
    assert asha.result == "Pass"

    nikhil = db.query(Student).filter(Student.roll_number == "BSC2024201").one()
    assert (nikhil.first_name, nikhil.last_name) == ("Nikhil", "Das")
    assert str(nikhil.date_of_birth) == "2003-04-12"

    result = db.query(Result).filter(Result.student_id == nikhil.id).one()
    # the absent Chemistry cell is not a subject
    assert [s.course_name for s in result.subjects] == ["Physics", "Lab"]
    assert result.result == "Fail"
    assert result.subjects[1].max_marks == 50


def test_upload_skips_terms_that_already_have_results(client, admin_headers, make_student):
    make_student("BSC2024001")
    assert upload(client, admin_headers, SHEET).json()["uploadedCount"] == 2

    body = upload(client, admin_headers, SHEET).json()
    assert body["uploadedCount"] == 0
    assert {e["rollNumber"] for e in body["errors"] if e["isDuplicate"]} == {"BSC2024001", "BSC2024201"}


def test_upload_links_catalog_courses(client, admin_headers, make_student, db):
    make_student("BSC2024001")
    db.add(Course(course_code="PHY101", course_name="Physics I", credits=4, department="Science", semester=2))
    db.commit()

    res = upload(client, admin_headers, "Roll No,Semester,PHY101\nBSC2024001,2,95\n", semester=None)
    assert res.status_code == 200, res.text
    assert res.json()["uploadedCount"] == 1

    result = db.query(Result).filter(Result.roll_number == "BSC2024001").one()
    assert result.semester == 2
    assert result.subjects[0].credits == 4
    assert result.sgpa == 10.0
    assert result.cgpa == 10.0


def test_upload_row_needs_a_term(client, admin_headers, make_student):
    make_student("BSC2024001")
    body = upload(client, admin_headers, "Roll No,Physics\nBSC2024001,50\n", academicYear=None).json()
    assert body["uploadedCount"] == 0
    assert body["errors"][0]["error"] == "Academic year is required"


def test_upload_rejects_sheets_without_roll_or_subjects(client, admin_headers):
    res = upload(client, admin_headers, "Name,Physics\nAsha,50\n")
    assert res.status_code == 400
    assert res.json()["message"] == "Could not detect a Roll Number column"

    res = upload(client, admin_headers, "Roll No,Student Name\nA1,Someone\n")
    assert res.status_code == 400
    assert res.json()["message"] == "Could not detect any subject columns"


def test_upload_requires_admin(client):
    files = {"file": ("results.csv", b"Roll No,Physics\nA1,50\n", "text/csv")}
    assert client.post("/api/results/upload", files=files).status_code == 401

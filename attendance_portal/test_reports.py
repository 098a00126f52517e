#!/usr/bin/env python3
"""
Test script for absence reports, Excel export and warning e-mails.
"""
from datetime import date
from io import BytesIO

from openpyxl import load_workbook

from attendance_portal.api.models import AttendanceRecord, Course
from attendance_portal.config.settings import REPORT_SHEET_NAME
from attendance_portal.errors import ConfigurationError, ValidationError
from attendance_portal.reports import (
    AbsenceMailer, StudentAbsence, absence_summaries, create_absence_workbook, filter_absences,
    report_filename, XLSX_MIME
)
from attendance_portal.testing import FakeResponse, FakeSession

MAIL_URL = "http://mail.test/send"
COURSE = Course(id=4, code="CS101", name="Intro to Programming")

AYSE = {"id": 1, "first_name": "Ayşe", "last_name": "Yılmaz", "email": "ayse@uni.edu"}
ALI = {"id": 2, "first_name": "Ali", "last_name": "Demir", "email": "ali@uni.edu"}
CAN = {"id": 3, "first_name": "Can", "last_name": "Öz"}


def records():
    sessions = [
        [AYSE, ALI, CAN],
        [AYSE, ALI],
        [AYSE, CAN, {"id": "4", "first_name": "Bad", "last_name": "Id"}],
        [ALI, {"id": True, "first_name": "Flag", "last_name": "Id"}, {"id": 5, "first_name": None}],
        [CAN, "garbage"],
    ]
    return [AttendanceRecord.from_dict({"id": i, "absent_students": absent}) for i, absent in enumerate(sessions)]


def test_absence_counts():
    summaries = {s.id: s for s in absence_summaries(records())}
    assert sorted(summaries) == [1, 2, 3]
    assert summaries[1].absences == 3
    assert summaries[2].absences == 3
    assert summaries[3].absences == 3
    assert summaries[1].name == "Ayşe Yılmaz"
    assert summaries[3].email is None


def test_threshold_search_and_order():
    summaries = [
        StudentAbsence(id=1, name="Zeynep Ak", absences=5),
        StudentAbsence(id=2, name="ali Demir", absences=3),
        StudentAbsence(id=3, name="Burak Can", absences=2),
        StudentAbsence(id=4, name="Ayşe Yılmaz", absences=4),
    ]
    assert [s.id for s in filter_absences(summaries)] == [2, 4, 1]
    assert [s.id for s in filter_absences(summaries, limit=2)] == [2, 4, 3, 1]
    assert [s.id for s in filter_absences(summaries, limit=5)] == [1]
    assert [s.id for s in filter_absences(summaries, search="DEMIR")] == [2]
    print("✓ Absence threshold and ordering")


def test_excel_export():
    rows = filter_absences(absence_summaries(records()))
    data, filename, mime = create_absence_workbook(rows, "CS101", date(2024, 3, 4))
    assert filename == "absences_CS101_2024-03-04.xlsx"
    assert mime == XLSX_MIME

    sheet = load_workbook(BytesIO(data))[REPORT_SHEET_NAME]
    values = list(sheet.iter_rows(values_only=True))
    assert values[0] == ("Student ID", "Name", "Total Absences")
    assert values[1] == (2, "Ali Demir", 3)
    assert len(values) == 4
    assert sheet.column_dimensions["B"].width >= len("Ayşe Yılmaz")


def test_empty_export_is_rejected():
    try:
        create_absence_workbook([], "CS101")
        assert False, "expected ValidationError"
    except ValidationError:
        pass
    assert report_filename(None, date(2024, 1, 2)) == "absences_report_2024-01-02.xlsx"


def make_mailer(routes=None, **kwargs):
    session = FakeSession(routes)
    config = dict(service_id="svc", template_id="tpl", public_key="pub", private_key="",
                  api_url=MAIL_URL, session=session)
    config.update(kwargs)
    return AbsenceMailer(**config), session


def test_warning_mails():
    def answer(call):
        if call["json"]["template_params"]["to_email"] == "bad@uni.edu":
            return FakeResponse(400, None, text="Invalid address")
        return FakeResponse(200, None, text="OK")

    mailer, session = make_mailer({f"POST {MAIL_URL}": answer})
    students = [
        StudentAbsence(id=1, name="Ayşe Yılmaz", absences=4, email="ayse@uni.edu"),
        StudentAbsence(id=2, name="Ali Demir", absences=3, email="bad@uni.edu"),
        StudentAbsence(id=3, name="Can Öz", absences=5, email=None),
    ]
    report = mailer.send_warnings(students, COURSE)

    assert report.sent == [1]
    assert report.failed == [2]
    assert report.missing_email == [3]
    assert report.error_count == 2
    assert not report.all_sent
    assert len(session.calls) == 2

    payload = session.calls[0]["json"]
    assert payload["service_id"] == "svc"
    assert payload["user_id"] == "pub"
    assert "accessToken" not in payload
    assert payload["template_params"]["course_code"] == "CS101"
    assert payload["template_params"]["absence_count"] in (4, 3)


def test_mailer_requires_configuration_and_students():
    mailer, session = make_mailer(service_id="")
    try:
        mailer.send_warnings([StudentAbsence(id=1, name="A B", absences=3, email="a@b.co")], COURSE)
        assert False, "expected ConfigurationError"
    except ConfigurationError:
        pass
    try:
        mailer.send_warnings([], COURSE)
        assert False, "expected ValidationError"
    except ValidationError:
        pass
    assert session.calls == []


def test_private_key_is_sent():
    mailer, session = make_mailer({f"POST {MAIL_URL}": FakeResponse(200, None, text="OK")}, private_key="secret")
    report = mailer.send_warnings([StudentAbsence(id=1, name="A B", absences=3, email="a@b.co")], COURSE)
    assert report.all_sent
    assert session.calls[0]["json"]["accessToken"] == "secret"


if __name__ == "__main__":
    print("Testing reports...")
    test_absence_counts()
    test_threshold_search_and_order()
    test_excel_export()
    test_empty_export_is_rejected()
    test_warning_mails()
    test_mailer_requires_configuration_and_students()
    test_private_key_is_sent()
    print("\n✅ Report tests passed!")

"""
Records returned by the attendance backend.

Each dataclass mirrors one JSON shape of the API and is built with
``from_dict``; missing optional fields default to None or empty values.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


def _int_or_none(value) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def _float_or_none(value) -> Optional[float]:
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None


@dataclass
class User:
    id: int
    email: str
    first_name: str
    last_name: str
    role: str
    is_active: bool = True
    teacher_id: Optional[int] = None
    student_id: Optional[int] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        return cls(
            id=_int_or_none(data.get("id")) or 0,
            email=data.get("email") or "",
            first_name=data.get("first_name") or "",
            last_name=data.get("last_name") or "",
            role=(data.get("role") or "").upper(),
            is_active=bool(data.get("is_active", True)),
            teacher_id=_int_or_none(data.get("teacher_id")),
            student_id=_int_or_none(data.get("student_id")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "role": self.role,
            "is_active": self.is_active,
            "teacher_id": self.teacher_id,
            "student_id": self.student_id,
        }


@dataclass
class LessonTime:
    day: str
    start_time: str
    end_time: str
    lesson_number: int = 1

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LessonTime":
        return cls(
            day=(data.get("day") or "").upper(),
            start_time=(data.get("start_time") or "")[:5],
            end_time=(data.get("end_time") or "")[:5],
            lesson_number=_int_or_none(data.get("lesson_number")) or 1,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "day": self.day,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "lesson_number": self.lesson_number,
        }


@dataclass
class Course:
    id: int
    code: str
    name: str
    semester: str = ""
    teacher_id: Optional[int] = None
    description: Optional[str] = None
    lesson_times: List[LessonTime] = field(default_factory=list)

    @property
    def label(self) -> str:
        return f"{self.code} - {self.name}"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Course":
        return cls(
            id=_int_or_none(data.get("id")) or 0,
            code=data.get("code") or "",
            name=data.get("name") or "",
            semester=data.get("semester") or "",
            teacher_id=_int_or_none(data.get("teacher_id")),
            description=data.get("description"),
            lesson_times=[LessonTime.from_dict(lt) for lt in data.get("lesson_times") or []],
        )


@dataclass
class Student:
    id: int
    user_id: Optional[int]
    student_number: str
    department: str
    face_photo_url: Optional[str] = None
    user: Optional[User] = None

    @property
    def full_name(self) -> str:
        return self.user.full_name if self.user else ""

    @property
    def email(self) -> str:
        return self.user.email if self.user else ""

    @property
    def has_face_photo(self) -> bool:
        return bool(self.face_photo_url)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Student":
        user = data.get("user")
        return cls(
            id=_int_or_none(data.get("id")) or 0,
            user_id=_int_or_none(data.get("user_id")),
            student_number=str(data.get("student_number") or ""),
            department=data.get("department") or "",
            face_photo_url=data.get("face_photo_url"),
            user=User.from_dict(user) if isinstance(user, dict) else None,
        )


@dataclass
class AttendanceDetail:
    student_id: int
    status: str
    confidence: Optional[float] = None
    emotion: Optional[str] = None
    estimated_age: Optional[int] = None
    estimated_gender: Optional[str] = None
    first_name: str = ""
    last_name: str = ""
    student_number: str = ""
    email: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AttendanceDetail":
        # Names come either flat or nested under "student" (and its "user")
        student = data.get("student") if isinstance(data.get("student"), dict) else {}
        user = student.get("user") if isinstance(student.get("user"), dict) else {}
        return cls(
            student_id=_int_or_none(data.get("student_id")) or _int_or_none(student.get("id")) or 0,
            status=(data.get("status") or "").upper(),
            confidence=_float_or_none(data.get("confidence")),
            emotion=data.get("emotion"),
            estimated_age=_int_or_none(data.get("estimated_age")),
            estimated_gender=data.get("estimated_gender"),
            first_name=data.get("first_name") or student.get("first_name") or user.get("first_name") or "",
            last_name=data.get("last_name") or student.get("last_name") or user.get("last_name") or "",
            student_number=str(data.get("student_number") or student.get("student_number") or ""),
            email=data.get("email") or student.get("email") or user.get("email") or "",
        )


@dataclass
class AttendanceRecord:
    id: int
    course_id: int
    date: Optional[str]
    lesson_number: Optional[int]
    type: str
    total_students: Optional[int] = None
    recognized_students: Optional[int] = None
    unrecognized_students: Optional[int] = None
    emotion_statistics: Dict[str, int] = field(default_factory=dict)
    details: List[AttendanceDetail] = field(default_factory=list)
    present_students: List[Dict[str, Any]] = field(default_factory=list)
    absent_students: List[Dict[str, Any]] = field(default_factory=list)
    photo_path: Optional[str] = None

    @property
    def participation(self) -> Optional[float]:
        """Recognized share of the class in percent, None when the total is unknown."""
        total = self.total_students or 0
        if total <= 0:
            return None
        return (self.recognized_students or 0) / total * 100

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AttendanceRecord":
        stats = data.get("emotion_statistics") or {}
        return cls(
            id=_int_or_none(data.get("id")) or 0,
            course_id=_int_or_none(data.get("course_id")) or 0,
            date=data.get("date") or None,
            lesson_number=_int_or_none(data.get("lesson_number")),
            type=(data.get("type") or "FACE").upper(),
            total_students=_int_or_none(data.get("total_students")),
            recognized_students=_int_or_none(data.get("recognized_students")),
            unrecognized_students=_int_or_none(data.get("unrecognized_students")),
            emotion_statistics={str(k): int(v or 0) for k, v in stats.items()} if isinstance(stats, dict) else {},
            details=[AttendanceDetail.from_dict(d) for d in data.get("details") or []],
            present_students=list(data.get("present_students") or []),
            absent_students=list(data.get("absent_students") or []),
            photo_path=data.get("photo_path"),
        )


@dataclass
class AttendanceResult:
    attendance_id: int
    recognized_count: int
    unrecognized_count: int
    emotion_statistics: Dict[str, int] = field(default_factory=dict)
    results: List[AttendanceDetail] = field(default_factory=list)

    @property
    def present_count(self) -> int:
        return sum(1 for r in self.results if r.status == "PRESENT")

    @property
    def absent_count(self) -> int:
        return sum(1 for r in self.results if r.status == "ABSENT")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AttendanceResult":
        stats = data.get("emotion_statistics") or {}
        return cls(
            attendance_id=_int_or_none(data.get("attendance_id")) or 0,
            recognized_count=_int_or_none(data.get("recognized_count")) or 0,
            unrecognized_count=_int_or_none(data.get("unrecognized_count")) or 0,
            emotion_statistics={str(k): int(v or 0) for k, v in stats.items()} if isinstance(stats, dict) else {},
            results=[AttendanceDetail.from_dict(r) for r in data.get("results") or []],
        )

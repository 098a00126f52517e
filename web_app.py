import os
import sys
import threading
from datetime import date, time as dtime

import av
import pandas as pd
import streamlit as st
from streamlit_webrtc import (
    RTCConfiguration,
    WebRtcMode,
    VideoProcessorBase,
    webrtc_streamer,
)

# Ensure imports resolve relative to this directory
CURRENT_DIR = os.path.dirname(os.path.abspath(__file__))
if CURRENT_DIR not in sys.path:
    sys.path.append(CURRENT_DIR)

from attendance_portal.api import ViewCache, endpoints
from attendance_portal.attendance import service as attendance_service
from attendance_portal.auth import SessionManager, ROLE_TEACHER, LOGIN_ROUTE
from attendance_portal.config import setup_logging
from attendance_portal.config.settings import (
    ATTENDANCE_TYPES, ATTENDANCE_STATUSES, DEFAULT_ABSENCE_LIMIT, MAX_LESSON_NUMBER,
    STUN_SERVERS, SUPPORTED_LANGUAGES, WEEK_DAYS
)
from attendance_portal.courses import service as course_service
from attendance_portal.dashboard import (
    load_teacher_dashboard, load_student_dashboard, teacher_summary, course_attendance_frame,
    emotion_frame, weekly_schedule, upcoming_lessons, student_summary, student_course_rates,
    recent_entries
)
from attendance_portal.errors import PortalError, UnauthorizedError, ValidationError
from attendance_portal.i18n import translate, attendance_type_label, status_label, day_name, lesson_label
from attendance_portal.registration import RegistrationWizard, StepStatus, FormStep
from attendance_portal.reports import (
    AbsenceMailer, absence_frame, absence_summaries, create_absence_workbook, filter_absences
)
from attendance_portal.students import service as student_service
from attendance_portal.utils.camera_utils import CaptureSession, CaptureState, flip_frame


st.set_page_config(
    page_title="Face Recognition Attendance Portal",
    page_icon="🎓",
    layout="wide",
)

setup_logging()


THEMES = {
    "light": {"surface": "#ffffff", "text": "#0f172a", "muted": "#5b6b7b", "background": "#f8fafc"},
    "dark": {"surface": "#0f172a", "text": "#e2e8f0", "muted": "#94a3b8", "background": "#020617"},
}


def inject_styles(theme: str):
    """Theme colors plus header, footer and button styling."""
    colors = THEMES.get(theme, THEMES["light"])
    st.markdown(
        f"""
        <style>
        :root {{
            --brand-primary: #0a66c2;
            --text-main: {colors["text"]};
            --text-muted: {colors["muted"]};
            --surface: {colors["surface"]};
        }}
        .stApp {{ background: {colors["background"]}; color: var(--text-main); }}

        /* Header */
        .app-header {{
            display: flex;
            align-items: center;
            gap: 16px;
            padding: 10px 14px 18px 8px;
            border-bottom: 1px solid rgba(127,127,127,0.15);
            background: var(--surface);
            animation: headerFade 400ms ease 1;
        }}
        .brand-text h1 {{
            font-size: 22px;
            line-height: 1.25;
            margin: 0;
            color: var(--text-main);
        }}
        .brand-text p {{
            margin: 2px 0 0 0;
            color: var(--text-muted);
            font-size: 12px;
        }}
        @keyframes headerFade {{ from {{opacity: 0; transform: translateY(-6px);}} to {{opacity: 1; transform: translateY(0);}} }}

        /* Footer */
        .app-footer {{
            width: 100%;
            margin-top: 28px;
            padding: 14px 10px;
            color: var(--text-muted);
            border-top: 1px solid rgba(127,127,127,0.15);
            font-size: 12px;
            text-align: center;
        }}

        /* Step indicator of the registration wizard */
        .step-row {{ display: flex; gap: 8px; margin: 4px 0 12px 0; }}
        .step {{ padding: 4px 10px; border-radius: 12px; font-size: 12px; background: rgba(127,127,127,0.12); }}
        .step.active {{ background: var(--brand-primary); color: #fff; }}

        .stButton > button {{
            transition: transform 120ms ease, box-shadow 180ms ease;
        }}
        .stButton > button:hover {{
            transform: translateY(-1px);
            box-shadow: 0 6px 14px rgba(0,0,0,0.20);
        }}
        </style>
        """,
        unsafe_allow_html=True,
    )


def render_header(subtitle: str = ""):
    html = f"""
    <div class="app-header">
        <div class="brand-text">
            <h1>{t("app.title")}</h1>
            <p>{subtitle or t("app.subtitle")}</p>
        </div>
    </div>
    """
    st.markdown(html, unsafe_allow_html=True)


def render_footer():
    st.markdown(
        f'<div class="app-footer">{t("app.title")}</div>',
        unsafe_allow_html=True,
    )


# -------------------- Session helpers -------------------- #

def ensure_session() -> SessionManager:
    if "session_manager" not in st.session_state:
        manager = SessionManager()
        manager.restore()
        st.session_state.session_manager = manager
        st.session_state.page = manager.landing_route
    return st.session_state.session_manager


def manager() -> SessionManager:
    return st.session_state.session_manager


def t(key: str, **values) -> str:
    language = st.session_state.session_manager.language if "session_manager" in st.session_state else None
    return translate(key, language, **values)


def navigate(page: str):
    st.session_state.page = page


def show_error(error: PortalError):
    st.error(error.message)
    if isinstance(error, UnauthorizedError):
        navigate(LOGIN_ROUTE)


def view_cache() -> ViewCache:
    if "view_cache" not in st.session_state:
        st.session_state.view_cache = ViewCache()
    return st.session_state.view_cache


def load_cached(name: str, key: tuple, loader):
    """
    Run ``loader(cancel_token)`` once per key while the current page is shown.

    A newer key cancels the request of the older one, so a late result for
    a previous selection is never stored. Leaving the page drops the result.
    """
    try:
        return view_cache().load(name, key, loader)
    except PortalError as e:
        show_error(e)
        return None


def invalidate(*names: str):
    view_cache().invalidate(*names)


def teacher_course_list():
    m = manager()
    return load_cached(
        "teacher_courses", (m.teacher_id,),
        lambda token: course_service.teacher_courses(m.client, m.teacher_id, cancel_token=token),
    ) or []


def course_select(courses, key: str):
    if not courses:
        st.info(t("common.none"))
        return None
    return st.selectbox(
        t("common.course"), courses, key=key,
        format_func=lambda c: c.label,
    )


# -------------------- Camera / photo input -------------------- #

RTC_CONFIG = RTCConfiguration({
    "iceServers": [{"urls": STUN_SERVERS}],
})


class CaptureProcessor(VideoProcessorBase):
    """Keeps the latest browser frame so the page can capture it."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._frame = None

    def recv(self, frame: av.VideoFrame) -> av.VideoFrame:
        img = frame.to_ndarray(format="bgr24")
        with self._lock:
            self._frame = img.copy()
        return av.VideoFrame.from_ndarray(flip_frame(img), format="bgr24")

    def latest_frame(self):
        with self._lock:
            return None if self._frame is None else self._frame.copy()


def render_photo_input(capture: CaptureSession, key: str):
    """One branch per capture state: idle, live camera, or photo preview."""
    if capture.mode == CaptureState.IDLE:
        st.caption(t("photo.hint"))
        if st.button(f"📷 {t('photo.open_camera')}", key=f"{key}-open"):
            capture.open_camera()
            st.rerun()
        uploaded = st.file_uploader(t("photo.upload"), type=["jpg", "jpeg", "png"], key=f"{key}-upload")
        if uploaded is not None:
            try:
                capture.accept_upload(uploaded.name, uploaded.getvalue(), uploaded.type)
                st.rerun()
            except ValidationError as e:
                st.error(e.message)

    elif capture.mode == CaptureState.STREAMING:
        ctx = webrtc_streamer(
            key=f"{key}-camera",
            mode=WebRtcMode.SENDRECV,
            rtc_configuration=RTC_CONFIG,
            media_stream_constraints={"video": True, "audio": False},
            video_processor_factory=CaptureProcessor,
        )
        col1, col2 = st.columns(2)
        if col1.button(t("photo.capture"), key=f"{key}-capture", type="primary", use_container_width=True):
            frame = ctx.video_processor.latest_frame() if ctx.video_processor else None
            try:
                capture.capture(frame)
                st.rerun()
            except ValidationError as e:
                st.error(e.message)
        if col2.button(t("common.cancel"), key=f"{key}-cancel", use_container_width=True):
            capture.reset()
            st.rerun()

    else:
        st.image(capture.photo.data, caption=capture.photo.name, width=320)
        col1, col2 = st.columns(2)
        if col1.button(t("photo.retake"), key=f"{key}-retake", use_container_width=True):
            capture.open_camera()
            st.rerun()
        if col2.button(t("photo.remove"), key=f"{key}-remove", use_container_width=True):
            capture.reset()
            st.rerun()


# -------------------- Registration wizard -------------------- #

STEP_TEXT = {
    "register": "register.registering",
    "face": "register.uploading_photo",
    "enroll": "register.enrolling",
}
STEP_ICONS = {
    StepStatus.IDLE: "⚪",
    StepStatus.LOADING: "⏳",
    StepStatus.SUCCESS: "✅",
    StepStatus.ERROR: "❌",
}


def render_registration_wizard(wizard_key: str):
    m = manager()
    if wizard_key not in st.session_state:
        st.session_state[wizard_key] = RegistrationWizard(m.client)
    wizard = st.session_state[wizard_key]

    if not wizard.courses:
        try:
            wizard.load_courses()
        except PortalError as e:
            show_error(e)

    steps = [
        (FormStep.INFO, t("register.step_info")),
        (FormStep.PHOTO, t("register.step_photo")),
        (FormStep.COURSES, t("register.step_courses")),
    ]
    st.markdown(
        '<div class="step-row">' + "".join(
            f'<span class="step{" active" if step == wizard.form_step else ""}">{step.value}. {label}</span>'
            for step, label in steps
        ) + "</div>",
        unsafe_allow_html=True,
    )

    if wizard.form_step == FormStep.INFO:
        with st.form(f"{wizard_key}-info"):
            c1, c2 = st.columns(2)
            first_name = c1.text_input(t("register.first_name"), value=wizard.info.get("first_name", ""))
            last_name = c2.text_input(t("register.last_name"), value=wizard.info.get("last_name", ""))
            email = st.text_input(t("common.email"), value=wizard.info.get("email", ""))
            password = st.text_input(t("login.password"), type="password")
            c3, c4 = st.columns(2)
            student_number = c3.text_input(t("register.student_number"),
                                           value=wizard.info.get("student_number", ""))
            department = c4.text_input(t("register.department"), value=wizard.info.get("department", ""))
            submitted = st.form_submit_button(t("common.next"), type="primary")
        if submitted:
            try:
                wizard.set_info({
                    "first_name": first_name, "last_name": last_name, "email": email,
                    "password": password or wizard.info.get("password", ""),
                    "student_number": student_number, "department": department,
                })
                wizard.next_step()
                st.rerun()
            except ValidationError as e:
                st.error(e.message)

    elif wizard.form_step == FormStep.PHOTO:
        render_photo_input(wizard.capture, f"{wizard_key}-photo")
        col1, col2 = st.columns(2)
        if col1.button(t("common.back"), key=f"{wizard_key}-back1", use_container_width=True):
            wizard.previous_step()
            st.rerun()
        if col2.button(t("common.next"), key=f"{wizard_key}-next2", type="primary", use_container_width=True):
            try:
                wizard.next_step()
                st.rerun()
            except ValidationError as e:
                st.error(e.message)

    else:
        for course in wizard.courses:
            checked = st.checkbox(course.label, value=course.id in wizard.selected_course_ids,
                                  key=f"{wizard_key}-course-{course.id}")
            if checked != (course.id in wizard.selected_course_ids):
                wizard.toggle_course(course.id)

        for name, status in wizard.statuses.items():
            if status != StepStatus.IDLE:
                st.write(f"{STEP_ICONS[status]} {t(STEP_TEXT[name])}")

        if wizard.error:
            st.error(wizard.error)
        if wizard.success:
            st.success(t("register.success", student_id=wizard.student_id))
            if st.button(t("register.new"), key=f"{wizard_key}-new"):
                wizard.reset()
                st.rerun()
            return

        col1, col2 = st.columns(2)
        if col1.button(t("common.back"), key=f"{wizard_key}-back2", use_container_width=True):
            wizard.previous_step()
            st.rerun()
        label = t("common.retry") if wizard.failed_step else t("register.submit")
        if col2.button(label, key=f"{wizard_key}-submit", type="primary", use_container_width=True):
            try:
                with st.spinner(t("common.loading")):
                    if wizard.failed_step:
                        wizard.retry()
                    else:
                        wizard.submit()
                invalidate("students")
            except PortalError:
                pass
            st.rerun()


# -------------------- Sidebar -------------------- #

TEACHER_MENU = [
    (None, [("teacher_dashboard", "nav.home")]),
    ("nav.courses", [("courses_new", "nav.courses_new"), ("courses_list", "nav.courses_list")]),
    ("nav.attendance", [
        ("attendance_new", "nav.attendance_new"),
        ("attendance_history", "nav.attendance_history"),
        ("attendance_reports", "nav.attendance_reports"),
    ]),
    ("nav.students", [("students_new", "nav.students_new"), ("students_list", "nav.students_list")]),
    (None, [("settings", "nav.settings")]),
]

STUDENT_MENU = [
    (None, [("student_dashboard", "nav.home")]),
    (None, [("student_courses", "nav.my_courses"), ("student_attendance", "nav.my_attendance")]),
    (None, [("settings", "nav.settings")]),
]


def render_sidebar():
    m = manager()
    st.sidebar.title(t("app.title"))

    if m.is_authenticated:
        st.sidebar.caption(f"{m.user.full_name} · {m.user.email}")
        menu = TEACHER_MENU if m.role == ROLE_TEACHER else STUDENT_MENU
        for group, items in menu:
            if group:
                st.sidebar.markdown(f"**{t(group)}**")
            for page, label in items:
                kind = "primary" if st.session_state.get("page") == page else "secondary"
                if st.sidebar.button(t(label), key=f"sb-{page}", type=kind, use_container_width=True):
                    navigate(page)
                    st.rerun()

    st.sidebar.divider()
    language = st.sidebar.selectbox(
        t("common.language"), SUPPORTED_LANGUAGES,
        index=SUPPORTED_LANGUAGES.index(m.language) if m.language in SUPPORTED_LANGUAGES else 0,
        format_func=str.upper, key="sb-language",
    )
    if language != m.language:
        m.set_language(language)
        st.rerun()

    themes = ("light", "dark")
    theme = st.sidebar.radio(
        t("common.theme"), themes, index=themes.index(m.theme) if m.theme in themes else 0,
        format_func=lambda value: t(f"common.theme_{value}"), horizontal=True, key="sb-theme",
    )
    if theme != m.theme:
        m.set_theme(theme)
        st.rerun()

    if m.is_authenticated and st.sidebar.button(t("nav.logout"), key="sb-logout", use_container_width=True):
        navigate(m.logout())
        view_cache().clear()
        st.rerun()


# -------------------- Login -------------------- #

def login_page():
    render_header()
    m = manager()
    left, right = st.columns([1, 1])

    with left:
        st.subheader(t("login.title"))
        with st.form("login_form"):
            email = st.text_input(t("login.email"))
            password = st.text_input(t("login.password"), type="password")
            submitted = st.form_submit_button(t("login.submit"), type="primary", use_container_width=True)
        if submitted:
            try:
                route = m.login(email, password)
                view_cache().clear()
                navigate(route)
                st.rerun()
            except PortalError as e:
                st.error(e.message)

        with st.expander(t("login.forgot")):
            with st.form("reset_form"):
                reset_email = st.text_input(t("login.email"), key="reset-email")
                if st.form_submit_button(t("login.reset_submit")):
                    try:
                        m.request_password_reset(reset_email)
                        st.success(t("login.reset_sent"))
                    except PortalError as e:
                        st.error(e.message)

        with st.expander(t("common.api_url")):
            api_url = st.text_input(t("common.api_url"), value=m.api_url, key="login-api-url")
            if st.button(t("common.save"), key="login-api-save"):
                m.set_api_url(api_url)
                st.success(m.api_url)

    with right:
        st.subheader(t("login.register"))
        render_registration_wizard("wizard_self")


# -------------------- Teacher pages -------------------- #

def teacher_dashboard_page():
    m = manager()
    render_header(t("dashboard.welcome", name=m.user.full_name))
    data = load_cached(
        "teacher_dashboard", (m.teacher_id,),
        lambda token: load_teacher_dashboard(m.client, m.teacher_id, cancel_token=token),
    )
    if data is None:
        return

    summary = teacher_summary(data)
    if summary["failed_courses"]:
        st.warning(t("common.partial_failure", count=summary["failed_courses"]))

    c1, c2, c3 = st.columns(3)
    c1.metric(t("dashboard.total_courses"), summary["total_courses"])
    c2.metric(t("dashboard.total_sessions"), summary["total_sessions"])
    average = summary["average_attendance"]
    c3.metric(t("dashboard.average"), f"%{average}" if average is not None else "-")

    per_course = course_attendance_frame(data)
    left, right = st.columns(2)
    with left:
        st.subheader(t("dashboard.per_course"))
        if per_course.empty:
            st.info(t("common.none"))
        else:
            st.bar_chart(per_course.set_index("Course")["Attendance %"].fillna(0))
    with right:
        st.subheader(t("dashboard.emotions"))
        emotions = emotion_frame(data)
        if emotions.empty:
            st.info(t("common.none"))
        else:
            st.bar_chart(emotions)

    left, right = st.columns(2)
    with left:
        st.subheader(t("dashboard.schedule"))
        rows = [
            {t("courses.day"): day_name(day, m.language), t("common.course"): s["course"],
             t("courses.start"): s["start_time"], t("courses.end"): s["end_time"]}
            for day, slots in weekly_schedule(data.courses).items() for s in slots
        ]
        if rows:
            st.dataframe(pd.DataFrame(rows), hide_index=True, use_container_width=True)
        else:
            st.info(t("common.none"))
    with right:
        st.subheader(t("dashboard.upcoming"))
        lessons = upcoming_lessons(data.courses)
        if not lessons:
            st.info(t("common.none"))
        for lesson in lessons:
            st.write(f"**{lesson['course']}** {lesson['name']} · {day_name(lesson['day'], m.language)} "
                     f"{lesson['start_time']}-{lesson['end_time']}")

    if st.button("↻", key="dash-refresh"):
        invalidate("teacher_dashboard")
        st.rerun()


def render_course_form(form_key: str, initial: dict):
    """Course fields plus a variable number of lesson time rows."""
    count_key = f"{form_key}-slots"
    if count_key not in st.session_state:
        st.session_state[count_key] = max(1, len(initial.get("lesson_times") or []))
    st.number_input(t("courses.lesson_times"), min_value=1, max_value=14, key=count_key)

    with st.form(form_key):
        c1, c2 = st.columns(2)
        code = c1.text_input(t("courses.code"), value=initial.get("code", ""))
        name = c2.text_input(t("courses.name"), value=initial.get("name", ""))
        semester = st.text_input(t("courses.semester"), value=initial.get("semester", ""))
        description = st.text_area(t("courses.description"), value=initial.get("description", ""))

        slots = []
        existing = initial.get("lesson_times") or []
        for i in range(int(st.session_state[count_key])):
            slot = existing[i] if i < len(existing) else {}
            d, s, e = st.columns(3)
            day = d.selectbox(
                t("courses.day"), WEEK_DAYS, key=f"{form_key}-day-{i}",
                index=WEEK_DAYS.index(slot["day"]) if slot.get("day") in WEEK_DAYS else 0,
                format_func=lambda value: day_name(value, manager().language),
            )
            start = s.time_input(t("courses.start"), key=f"{form_key}-start-{i}",
                                 value=_parse_time(slot.get("start_time"), dtime(9, 0)))
            end = e.time_input(t("courses.end"), key=f"{form_key}-end-{i}",
                               value=_parse_time(slot.get("end_time"), dtime(9, 50)))
            slots.append({"day": day, "start_time": start.strftime("%H:%M"), "end_time": end.strftime("%H:%M")})

        submitted = st.form_submit_button(t("common.save"), type="primary")
    if not submitted:
        return None
    return {"code": code, "name": name, "semester": semester, "description": description, "lesson_times": slots}


def _parse_time(value, default: dtime) -> dtime:
    try:
        hour, minute = (int(part) for part in str(value)[:5].split(":"))
        return dtime(hour, minute)
    except ValueError:
        return default


def course_new_page():
    render_header(t("courses.new_title"))
    m = manager()
    data = render_course_form("course-new", {})
    if data is not None:
        try:
            course_service.create_course(m.client, data, m.teacher_id)
            invalidate("teacher_courses", "teacher_dashboard")
            st.success(t("courses.created"))
        except PortalError as e:
            show_error(e)


def course_list_page():
    render_header(t("courses.title"))
    m = manager()
    courses = teacher_course_list()
    if not courses:
        st.info(t("common.none"))
        return

    for course in courses:
        with st.expander(f"{course.label} · {course.semester}"):
            if course.description:
                st.write(course.description)
            for slot in course.lesson_times:
                st.write(f"{slot.lesson_number}. {day_name(slot.day, m.language)} {slot.start_time}-{slot.end_time}")

            editing_key = f"edit-course-{course.id}"
            c1, c2 = st.columns(2)
            if c1.button(t("common.edit"), key=f"btn-{editing_key}"):
                st.session_state[editing_key] = True
            confirm_key = f"confirm-delete-course-{course.id}"
            if c2.button(t("common.delete"), key=f"btn-del-{course.id}"):
                st.session_state[confirm_key] = True

            if st.session_state.get(confirm_key):
                st.warning(f"{course.label}?")
                d1, d2 = st.columns(2)
                if d1.button(t("common.delete"), key=f"yes-del-{course.id}", type="primary"):
                    try:
                        course_service.delete_course(m.client, course.id)
                        invalidate("teacher_courses", "teacher_dashboard")
                        st.session_state[confirm_key] = False
                        st.rerun()
                    except PortalError as e:
                        show_error(e)
                if d2.button(t("common.cancel"), key=f"no-del-{course.id}"):
                    st.session_state[confirm_key] = False
                    st.rerun()

            if st.session_state.get(editing_key):
                st.markdown(f"**{t('courses.edit_title')}**")
                data = render_course_form(f"course-edit-{course.id}", course_service.course_form_data(course))
                if data is not None:
                    try:
                        course_service.update_course(m.client, course.id, data, m.teacher_id)
                        invalidate("teacher_courses", "teacher_dashboard")
                        st.session_state[editing_key] = False
                        st.success(t("courses.updated"))
                        st.rerun()
                    except PortalError as e:
                        show_error(e)


def attendance_new_page():
    render_header(t("attendance.new_title"))
    m = manager()
    courses = teacher_course_list()
    course = course_select(courses, "att-course")
    if course is None:
        return

    c1, c2, c3 = st.columns(3)
    lesson_date = c1.date_input(t("common.date"), value=date.today(), key="att-date")
    lesson_number = c2.selectbox(t("attendance.lesson"), list(range(1, MAX_LESSON_NUMBER + 1)),
                                 format_func=lambda n: lesson_label(n, m.language), key="att-lesson")
    attendance_type = c3.selectbox(t("attendance.type"), ATTENDANCE_TYPES,
                                   format_func=lambda v: attendance_type_label(v, m.language), key="att-type")

    st.markdown(f"**{t('attendance.class_photo')}**")
    if "attendance_capture" not in st.session_state:
        st.session_state.attendance_capture = CaptureSession()
    capture = st.session_state.attendance_capture
    render_photo_input(capture, "att-photo")

    if st.button(t("attendance.submit"), key="att-submit", type="primary"):
        try:
            with st.spinner(t("common.loading")):
                result = attendance_service.take_attendance(
                    m.client, course.id, lesson_date.isoformat(), lesson_number, attendance_type,
                    capture.photo if capture.has_photo else None,
                )
            st.session_state.attendance_result = result
            invalidate("course_history", "teacher_dashboard", "report_records")
        except PortalError as e:
            show_error(e)

    result = st.session_state.get("attendance_result")
    if result is None:
        return

    st.divider()
    c1, c2, c3, c4 = st.columns(4)
    c1.metric(t("attendance.recognized"), result.recognized_count)
    c2.metric(t("attendance.unrecognized"), result.unrecognized_count)
    c3.metric(t("attendance.present"), result.present_count)
    c4.metric(t("attendance.absent"), result.absent_count)

    if result.emotion_statistics:
        st.subheader(t("attendance.emotions"))
        st.bar_chart(pd.Series(result.emotion_statistics, name=t("common.total")))

    rows = [{
        t("register.student_number"): d.student_number,
        t("common.name"): d.full_name,
        t("common.status"): status_label(d.status, m.language),
        t("attendance.confidence"): round(d.confidence, 2) if d.confidence is not None else None,
        t("attendance.emotion"): d.emotion,
        t("attendance.age"): d.estimated_age,
        t("attendance.gender"): d.estimated_gender,
    } for d in result.results]
    st.dataframe(pd.DataFrame(rows), hide_index=True, use_container_width=True)

    c1, c2 = st.columns(2)
    if c1.button(t("attendance.details"), key="att-open-detail"):
        st.session_state.attendance_id = result.attendance_id
        navigate("attendance_detail")
        st.rerun()
    if c2.button(t("common.retry"), key="att-new"):
        st.session_state.pop("attendance_result", None)
        capture.reset()
        st.rerun()


def attendance_history_page():
    render_header(t("attendance.history_title"))
    m = manager()
    course = course_select(teacher_course_list(), "hist-course")
    if course is None:
        return

    records = load_cached(
        "course_history", (course.id,),
        lambda token: attendance_service.load_course_history(m.client, course.id, cancel_token=token),
    )
    if records is None:
        return

    c1, c2, c3 = st.columns([1, 1, 2])
    use_date = c1.checkbox(t("common.date"), key="hist-use-date")
    picked = c2.date_input(t("common.date"), value=date.today(), key="hist-date", disabled=not use_date,
                           label_visibility="collapsed")
    search = c3.text_input(t("common.search"), placeholder=t("attendance.search_hint"), key="hist-search")

    filtered = attendance_service.filter_history(
        records, picked.isoformat() if use_date else None, search, m.language
    )
    summary = attendance_service.history_summary(filtered)

    s1, s2, s3, s4 = st.columns(4)
    s1.metric(t("attendance.sessions"), summary["total_sessions"])
    s2.metric(t("attendance.recognized_total"), summary["recognized_total"])
    s3.metric(t("attendance.last_date"), summary["last_date"])
    average = summary["average_participation"]
    s4.metric(t("attendance.average"), f"%{average}" if average is not None else "-")

    if not filtered:
        st.info(t("common.none"))
        return

    rows = [{
        "ID": r.id,
        t("common.date"): attendance_service.format_date(r.date),
        t("courses.day"): day_name(r.date, m.language),
        t("attendance.lesson"): lesson_label(r.lesson_number, m.language) if r.lesson_number else "-",
        t("attendance.type"): attendance_type_label(r.type, m.language),
        t("attendance.recognized"): r.recognized_students,
        t("common.total"): r.total_students,
        t("attendance.participation"): f"%{round(r.participation)}" if r.participation is not None else "-",
    } for r in filtered]
    st.dataframe(pd.DataFrame(rows), hide_index=True, use_container_width=True)

    selected = st.selectbox(
        t("attendance.details"), filtered, key="hist-detail",
        format_func=lambda r: f"#{r.id} · {attendance_service.format_date(r.date)} · "
                              f"{lesson_label(r.lesson_number, m.language)}",
    )
    if st.button(t("attendance.details"), key="hist-open"):
        st.session_state.attendance_id = selected.id
        navigate("attendance_detail")
        st.rerun()


def attendance_detail_page():
    render_header(t("attendance.detail_title"))
    m = manager()
    attendance_id = st.session_state.get("attendance_id")
    if not attendance_id:
        navigate("attendance_history")
        st.rerun()

    record = load_cached(
        "attendance_detail", (attendance_id,),
        lambda token: endpoints.get_attendance(m.client, attendance_id, cancel_token=token),
    )
    if record is None:
        return

    st.write(f"**{attendance_service.format_date(record.date)}** · "
             f"{lesson_label(record.lesson_number, m.language)} · {attendance_type_label(record.type, m.language)}")
    counts = attendance_service.status_counts(record.details)
    columns = st.columns(len(ATTENDANCE_STATUSES) + 1)
    for column, status in zip(columns, ATTENDANCE_STATUSES):
        column.metric(status_label(status, m.language), counts[status])
    rate = attendance_service.presence_rate(record.details)
    columns[-1].metric(t("attendance.participation"), f"%{round(rate)}" if rate is not None else "-")

    image_url = attendance_service.photo_url(m.api_url, record.photo_path)
    if image_url and st.checkbox(t("attendance.show_photo"), key=f"photo-{record.id}"):
        st.image(image_url, caption=t("attendance.class_photo"), width=640)

    if record.emotion_statistics:
        st.bar_chart(pd.Series(record.emotion_statistics, name=t("common.total")))

    term = st.text_input(t("common.search"), placeholder=t("attendance.student_search"),
                         key=f"detail-search-{record.id}")
    details = attendance_service.filter_details(record.details, term)
    if not details:
        st.info(t("common.none"))
    for detail in details:
        c1, c2, c3, c4 = st.columns([3, 2, 2, 1])
        c1.write(f"{detail.full_name} ({detail.student_number})")
        c2.write(f"{t('attendance.emotion')}: {detail.emotion or '-'}")
        new_status = c3.selectbox(
            t("common.status"), ATTENDANCE_STATUSES, key=f"status-{record.id}-{detail.student_id}",
            index=ATTENDANCE_STATUSES.index(detail.status) if detail.status in ATTENDANCE_STATUSES else 0,
            format_func=lambda v: status_label(v, m.language), label_visibility="collapsed",
        )
        if c4.button("✔", key=f"save-{record.id}-{detail.student_id}", disabled=new_status == detail.status):
            try:
                attendance_service.correct_status(m.client, record, detail.student_id, new_status)
                invalidate("course_history", "report_records", "teacher_dashboard")
                st.success(t("attendance.corrected"))
                st.rerun()
            except PortalError as e:
                show_error(e)

    if st.button(t("common.back"), key="detail-back"):
        navigate("attendance_history")
        st.rerun()


def attendance_reports_page():
    render_header(t("reports.title"))
    m = manager()
    course = course_select(teacher_course_list(), "rep-course")
    if course is None:
        return

    records = load_cached(
        "report_records", (course.id,),
        lambda token: attendance_service.load_course_history(m.client, course.id, cancel_token=token),
    )
    if records is None:
        return

    c1, c2 = st.columns([2, 1])
    search = c1.text_input(t("common.search"), key="rep-search")
    limit = c2.number_input(t("reports.limit"), min_value=0, value=DEFAULT_ABSENCE_LIMIT, step=1, key="rep-limit")
    rows = filter_absences(absence_summaries(records), search, int(limit))

    if not rows:
        st.info(t("common.none"))
        return
    frame = absence_frame(rows)
    frame.columns = ["ID", t("common.name"), t("reports.absences")]
    st.dataframe(frame, hide_index=True, use_container_width=True)

    data, filename, mime = create_absence_workbook(rows, course.code)
    st.download_button(t("reports.export"), data=data, file_name=filename, mime=mime, key="rep-export")

    selected = st.multiselect(t("reports.select_students"), rows, key="rep-selected",
                              format_func=lambda s: f"{s.name} ({s.absences})")
    if st.button(t("reports.send_mail"), key="rep-mail", type="primary"):
        try:
            with st.spinner(t("common.loading")):
                report = AbsenceMailer().send_warnings(selected, course)
            message = t("reports.mail_result", sent=len(report.sent), failed=report.error_count)
            if report.all_sent:
                st.success(message)
            else:
                st.warning(message)
        except PortalError as e:
            show_error(e)


def students_new_page():
    render_header(t("nav.students_new"))
    render_registration_wizard("wizard_teacher")


def students_list_page():
    render_header(t("students.title"))
    m = manager()
    students = load_cached(
        "students", ("all",),
        lambda token: student_service.load_students(m.client, cancel_token=token),
    )
    if students is None:
        return

    c1, c2 = st.columns([2, 1])
    search = c1.text_input(t("common.search"), key="stu-search")
    department = c2.selectbox(t("students.department_filter"),
                              [""] + student_service.departments(students),
                              format_func=lambda d: d or t("common.all"), key="stu-dept")
    filtered = student_service.filter_students(students, search, department)
    if not filtered:
        st.info(t("common.none"))
        return
    st.dataframe(student_service.students_frame(filtered), hide_index=True, use_container_width=True)

    target = st.selectbox(t("common.delete"), filtered, key="stu-delete-target",
                          format_func=lambda s: f"{s.full_name} ({s.student_number})")
    confirm_key = "stu-delete-confirm"
    if st.button(t("common.delete"), key="stu-delete"):
        st.session_state[confirm_key] = target.id
    if st.session_state.get(confirm_key) == target.id:
        st.warning(f"{target.full_name}?")
        d1, d2 = st.columns(2)
        if d1.button(t("common.delete"), key="stu-delete-yes", type="primary"):
            try:
                student_service.delete_student(m.client, target.id)
                invalidate("students")
                st.session_state[confirm_key] = None
                st.success(t("students.deleted"))
                st.rerun()
            except PortalError as e:
                show_error(e)
        if d2.button(t("common.cancel"), key="stu-delete-no"):
            st.session_state[confirm_key] = None
            st.rerun()


# -------------------- Student pages -------------------- #

def student_course_list():
    m = manager()
    return load_cached(
        "student_courses", (m.student_id,),
        lambda token: course_service.student_courses(m.client, m.student_id, cancel_token=token),
    ) or []


def student_dashboard_page():
    m = manager()
    render_header(t("dashboard.welcome", name=m.user.full_name))
    data = load_cached(
        "student_dashboard", (m.student_id,),
        lambda token: load_student_dashboard(m.client, m.student_id, cancel_token=token),
    )
    if data is None:
        return

    summary = student_summary(data)
    if summary["failed_courses"]:
        st.warning(t("common.partial_failure", count=summary["failed_courses"]))
    c1, c2, c3 = st.columns(3)
    c1.metric(t("dashboard.total_courses"), summary["total_courses"])
    c2.metric(t("dashboard.attended"), f"{summary['attended']} / {summary['total_classes']}")
    average = summary["average_attendance"]
    c3.metric(t("dashboard.average"), f"%{average}" if average is not None else "-")

    left, right = st.columns(2)
    with left:
        st.subheader(t("dashboard.per_course"))
        rates = student_course_rates(data)
        if rates.empty:
            st.info(t("common.none"))
        else:
            st.dataframe(rates, hide_index=True, use_container_width=True)
    with right:
        st.subheader(t("dashboard.upcoming"))
        for lesson in upcoming_lessons(data.courses):
            st.write(f"**{lesson['course']}** {lesson['name']} · {day_name(lesson['day'], m.language)} "
                     f"{lesson['start_time']}-{lesson['end_time']}")

    st.subheader(t("dashboard.recent"))
    recent = recent_entries(data)
    if recent:
        st.dataframe(pd.DataFrame([{
            t("common.course"): e["course"],
            t("common.date"): attendance_service.format_date(e.get("date")),
            t("attendance.lesson"): lesson_label(e.get("lesson_number"), m.language),
            t("common.status"): status_label(e.get("status"), m.language),
        } for e in recent]), hide_index=True, use_container_width=True)
    else:
        st.info(t("common.none"))


def student_courses_page():
    render_header(t("nav.my_courses"))
    m = manager()
    enrolled = student_course_list()
    for course in enrolled:
        st.write(f"**{course.label}** · {course.semester}")

    st.subheader(t("courses.available"))
    all_courses = load_cached(
        "all_courses", ("all",),
        lambda token: endpoints.list_courses(m.client, cancel_token=token),
    ) or []
    available = course_service.available_courses(all_courses, enrolled)
    if not available:
        st.info(t("common.none"))
    for course in available:
        c1, c2 = st.columns([4, 1])
        c1.write(f"{course.label} · {course.semester}")
        if c2.button(t("courses.enroll"), key=f"enroll-{course.id}"):
            try:
                course_service.enroll(m.client, course.id, m.student_id)
                invalidate("student_courses", "student_dashboard")
                st.success(t("courses.enrolled"))
                st.rerun()
            except PortalError as e:
                show_error(e)


def student_attendance_page():
    render_header(t("nav.my_attendance"))
    m = manager()
    course = course_select(student_course_list(), "my-att-course")
    if course is None:
        return
    entries = load_cached(
        "student_history", (course.id, m.student_id),
        lambda token: attendance_service.load_student_history(m.client, course.id, m.student_id,
                                                              cancel_token=token),
    )
    if not entries:
        st.info(t("common.none"))
        return
    st.dataframe(pd.DataFrame([{
        t("common.date"): attendance_service.format_date(e["date"]),
        t("courses.day"): day_name(e["date"], m.language),
        t("attendance.lesson"): lesson_label(e["lesson_number"], m.language),
        t("common.status"): status_label(e["status"], m.language),
    } for e in entries]), hide_index=True, use_container_width=True)


# -------------------- Settings -------------------- #

def settings_page():
    render_header(t("settings.title"))
    m = manager()

    st.subheader(t("settings.profile"))
    with st.form("profile_form"):
        c1, c2 = st.columns(2)
        first_name = c1.text_input(t("register.first_name"), value=m.user.first_name)
        last_name = c2.text_input(t("register.last_name"), value=m.user.last_name)
        st.text_input(t("common.email"), value=m.user.email, disabled=True)
        if st.form_submit_button(t("common.save"), type="primary"):
            try:
                m.update_profile(first_name, last_name)
                st.success(t("settings.saved"))
            except PortalError as e:
                show_error(e)

    if st.button(t("settings.password_reset"), key="settings-reset"):
        try:
            m.request_password_reset(m.user.email)
            st.success(t("login.reset_sent"))
        except PortalError as e:
            show_error(e)

    st.subheader(t("common.api_url"))
    api_url = st.text_input(t("common.api_url"), value=m.api_url, key="settings-api-url")
    if st.button(t("common.save"), key="settings-api-save"):
        m.set_api_url(api_url)
        st.success(m.api_url)


# -------------------- Routing -------------------- #

TEACHER_PAGES = {
    "teacher_dashboard": teacher_dashboard_page,
    "courses_new": course_new_page,
    "courses_list": course_list_page,
    "attendance_new": attendance_new_page,
    "attendance_history": attendance_history_page,
    "attendance_detail": attendance_detail_page,
    "attendance_reports": attendance_reports_page,
    "students_new": students_new_page,
    "students_list": students_list_page,
    "settings": settings_page,
}

STUDENT_PAGES = {
    "student_dashboard": student_dashboard_page,
    "student_courses": student_courses_page,
    "student_attendance": student_attendance_page,
    "settings": settings_page,
}


def router():
    m = manager()
    page = st.session_state.get("page", LOGIN_ROUTE)
    if not m.is_authenticated:
        navigate(LOGIN_ROUTE)
        login_page()
    else:
        pages = TEACHER_PAGES if m.role == ROLE_TEACHER else STUDENT_PAGES
        if page not in pages:
            page = m.landing_route
            navigate(page)
        view_cache().enter(page)
        pages[page]()
    # Global footer for all pages
    render_footer()


if __name__ == "__main__":
    session = ensure_session()
    inject_styles(session.theme)
    render_sidebar()
    router()

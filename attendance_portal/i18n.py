"""
User interface texts in Turkish and English.

Keys are dotted names; ``translate`` falls back to the default language and
then to the key itself, and fills ``{placeholder}`` values.
"""
import logging
from datetime import datetime
from typing import Optional

from .config.settings import DEFAULT_LANGUAGE, SUPPORTED_LANGUAGES

logger = logging.getLogger(__name__)

TRANSLATIONS = {
    "tr": {
        "app.title": "Yüz Tanıma Yoklama Sistemi",
        "app.subtitle": "Sınıf fotoğrafından otomatik yoklama",

        "nav.home": "Ana Sayfa",
        "nav.courses": "Dersler",
        "nav.courses_new": "Yeni Ders",
        "nav.courses_list": "Ders Listesi",
        "nav.attendance": "Yoklama",
        "nav.attendance_new": "Yeni Yoklama",
        "nav.attendance_history": "Yoklama Geçmişi",
        "nav.attendance_reports": "Devamsızlık Raporları",
        "nav.students": "Öğrenciler",
        "nav.students_new": "Yeni Öğrenci",
        "nav.students_list": "Öğrenci Listesi",
        "nav.settings": "Ayarlar",
        "nav.my_courses": "Derslerim",
        "nav.my_attendance": "Devamsızlığım",
        "nav.logout": "Çıkış Yap",

        "common.save": "Kaydet",
        "common.cancel": "İptal",
        "common.delete": "Sil",
        "common.edit": "Düzenle",
        "common.back": "Geri",
        "common.next": "İleri",
        "common.retry": "Tekrar Dene",
        "common.search": "Ara",
        "common.all": "Tümü",
        "common.loading": "Yükleniyor...",
        "common.none": "Kayıt bulunamadı.",
        "common.language": "Dil",
        "common.theme": "Tema",
        "common.theme_light": "Açık",
        "common.theme_dark": "Koyu",
        "common.api_url": "API Adresi",
        "common.course": "Ders",
        "common.select_course": "Ders seçin",
        "common.date": "Tarih",
        "common.status": "Durum",
        "common.name": "Ad Soyad",
        "common.email": "E-posta",
        "common.total": "Toplam",
        "common.partial_failure": "{count} dersin verisi alınamadı.",

        "login.title": "Giriş Yap",
        "login.email": "E-posta",
        "login.password": "Şifre",
        "login.submit": "Giriş",
        "login.forgot": "Şifremi Unuttum",
        "login.reset_submit": "Sıfırlama Bağlantısı Gönder",
        "login.reset_sent": "Şifre sıfırlama e-postası gönderildi.",
        "login.register": "Öğrenci Kaydı",

        "register.title": "Öğrenci Kaydı",
        "register.step_info": "Kişisel Bilgiler",
        "register.step_photo": "Yüz Fotoğrafı",
        "register.step_courses": "Dersler",
        "register.first_name": "Ad",
        "register.last_name": "Soyad",
        "register.student_number": "Öğrenci Numarası",
        "register.department": "Bölüm",
        "register.submit": "Kaydı Tamamla",
        "register.registering": "Öğrenci kaydediliyor...",
        "register.uploading_photo": "Yüz fotoğrafı yükleniyor...",
        "register.enrolling": "Derslere kayıt yapılıyor...",
        "register.success": "Kayıt başarılı! Öğrenci ID: {student_id}",
        "register.new": "Yeni Kayıt",

        "photo.open_camera": "Kamerayı Aç",
        "photo.capture": "Fotoğraf Çek",
        "photo.upload": "Fotoğraf Yükle",
        "photo.retake": "Yeniden Çek",
        "photo.remove": "Fotoğrafı Kaldır",
        "photo.hint": "JPEG veya PNG, en fazla 5 MB.",

        "attendance.new_title": "Yeni Yoklama Al",
        "attendance.lesson": "Ders Saati",
        "attendance.type": "Yoklama Türü",
        "attendance.class_photo": "Sınıf Fotoğrafı",
        "attendance.submit": "Yoklamayı Başlat",
        "attendance.recognized": "Tanınan",
        "attendance.unrecognized": "Tanınmayan",
        "attendance.present": "Var",
        "attendance.absent": "Yok",
        "attendance.emotions": "Duygu Dağılımı",
        "attendance.confidence": "Güven",
        "attendance.emotion": "Duygu",
        "attendance.age": "Tahmini Yaş",
        "attendance.gender": "Tahmini Cinsiyet",
        "attendance.history_title": "Yoklama Geçmişi",
        "attendance.search_hint": "Tarih, gün, ders saati, tür ara...",
        "attendance.sessions": "Toplam Yoklama",
        "attendance.recognized_total": "Toplam Tanınan",
        "attendance.last_date": "Son Yoklama",
        "attendance.average": "Ortalama Katılım",
        "attendance.details": "Detay",
        "attendance.detail_title": "Yoklama Detayı",
        "attendance.correct": "Durumu Güncelle",
        "attendance.corrected": "Durum güncellendi.",
        "attendance.participation": "Katılım",
        "attendance.student_search": "Ad, soyad veya öğrenci no ara...",
        "attendance.show_photo": "Fotoğrafı Göster",

        "type.FACE": "Yüz Tanıma",
        "type.EMOTION": "Duygu Analizi",
        "type.FACE_EMOTION": "Yüz + Duygu",

        "status.PRESENT": "Var",
        "status.ABSENT": "Yok",
        "status.LATE": "Geç",
        "status.EXCUSED": "İzinli",

        "lesson.label": "{number}. ders",

        "day.MONDAY": "Pazartesi",
        "day.TUESDAY": "Salı",
        "day.WEDNESDAY": "Çarşamba",
        "day.THURSDAY": "Perşembe",
        "day.FRIDAY": "Cuma",
        "day.SATURDAY": "Cumartesi",
        "day.SUNDAY": "Pazar",

        "reports.title": "Devamsızlık Raporları",
        "reports.limit": "Devamsızlık sınırı",
        "reports.absences": "Toplam devamsızlık",
        "reports.export": "Excel'e Aktar",
        "reports.send_mail": "Uyarı E-postası Gönder",
        "reports.mail_result": "{sent} e-posta gönderildi, {failed} başarısız.",
        "reports.select_students": "Öğrenci seçin",

        "courses.title": "Derslerim",
        "courses.new_title": "Yeni Ders Oluştur",
        "courses.edit_title": "Dersi Düzenle",
        "courses.code": "Ders Kodu",
        "courses.name": "Ders Adı",
        "courses.semester": "Dönem",
        "courses.description": "Açıklama",
        "courses.lesson_times": "Ders Saatleri",
        "courses.add_time": "Saat Ekle",
        "courses.day": "Gün",
        "courses.start": "Başlangıç",
        "courses.end": "Bitiş",
        "courses.created": "Ders oluşturuldu.",
        "courses.updated": "Ders güncellendi.",
        "courses.deleted": "Ders silindi.",
        "courses.available": "Kayıt Olunabilecek Dersler",
        "courses.enroll": "Kayıt Ol",
        "courses.enrolled": "Derse kayıt olundu.",

        "students.title": "Öğrenciler",
        "students.department_filter": "Bölüm",
        "students.face_photo": "Yüz Fotoğrafı",
        "students.deleted": "Öğrenci silindi.",

        "dashboard.welcome": "Hoş geldiniz, {name}",
        "dashboard.total_courses": "Toplam Ders",
        "dashboard.total_sessions": "Toplam Yoklama",
        "dashboard.average": "Ortalama Katılım",
        "dashboard.per_course": "Derslere Göre Katılım",
        "dashboard.emotions": "Derslere Göre Duygu Dağılımı",
        "dashboard.schedule": "Haftalık Program",
        "dashboard.upcoming": "Yaklaşan Dersler",
        "dashboard.attended": "Katıldığı Ders",
        "dashboard.recent": "Son Yoklamalar",

        "settings.title": "Ayarlar",
        "settings.profile": "Profil",
        "settings.saved": "Bilgileriniz güncellendi.",
        "settings.password_reset": "Şifre sıfırlama e-postası gönder",
    },
    "en": {
        "app.title": "Face Recognition Attendance System",
        "app.subtitle": "Automatic attendance from a class photo",

        "nav.home": "Home",
        "nav.courses": "Courses",
        "nav.courses_new": "New Course",
        "nav.courses_list": "Course List",
        "nav.attendance": "Attendance",
        "nav.attendance_new": "Take Attendance",
        "nav.attendance_history": "Attendance History",
        "nav.attendance_reports": "Absence Reports",
        "nav.students": "Students",
        "nav.students_new": "New Student",
        "nav.students_list": "Student List",
        "nav.settings": "Settings",
        "nav.my_courses": "My Courses",
        "nav.my_attendance": "My Attendance",
        "nav.logout": "Log Out",

        "common.save": "Save",
        "common.cancel": "Cancel",
        "common.delete": "Delete",
        "common.edit": "Edit",
        "common.back": "Back",
        "common.next": "Next",
        "common.retry": "Retry",
        "common.search": "Search",
        "common.all": "All",
        "common.loading": "Loading...",
        "common.none": "No records found.",
        "common.language": "Language",
        "common.theme": "Theme",
        "common.theme_light": "Light",
        "common.theme_dark": "Dark",
        "common.api_url": "API URL",
        "common.course": "Course",
        "common.select_course": "Select a course",
        "common.date": "Date",
        "common.status": "Status",
        "common.name": "Name",
        "common.email": "E-mail",
        "common.total": "Total",
        "common.partial_failure": "Data for {count} course(s) could not be loaded.",

        "login.title": "Log In",
        "login.email": "E-mail",
        "login.password": "Password",
        "login.submit": "Log In",
        "login.forgot": "Forgot password",
        "login.reset_submit": "Send Reset Link",
        "login.reset_sent": "Password reset e-mail sent.",
        "login.register": "Student Registration",

        "register.title": "Student Registration",
        "register.step_info": "Personal Information",
        "register.step_photo": "Face Photo",
        "register.step_courses": "Courses",
        "register.first_name": "First name",
        "register.last_name": "Last name",
        "register.student_number": "Student number",
        "register.department": "Department",
        "register.submit": "Complete Registration",
        "register.registering": "Registering student...",
        "register.uploading_photo": "Uploading face photo...",
        "register.enrolling": "Enrolling in courses...",
        "register.success": "Registration complete! Student ID: {student_id}",
        "register.new": "New Registration",

        "photo.open_camera": "Open Camera",
        "photo.capture": "Take Photo",
        "photo.upload": "Upload Photo",
        "photo.retake": "Retake",
        "photo.remove": "Remove Photo",
        "photo.hint": "JPEG or PNG, at most 5 MB.",

        "attendance.new_title": "Take Attendance",
        "attendance.lesson": "Lesson",
        "attendance.type": "Attendance Type",
        "attendance.class_photo": "Class Photo",
        "attendance.submit": "Start Attendance",
        "attendance.recognized": "Recognized",
        "attendance.unrecognized": "Unrecognized",
        "attendance.present": "Present",
        "attendance.absent": "Absent",
        "attendance.emotions": "Emotion Distribution",
        "attendance.confidence": "Confidence",
        "attendance.emotion": "Emotion",
        "attendance.age": "Estimated Age",
        "attendance.gender": "Estimated Gender",
        "attendance.history_title": "Attendance History",
        "attendance.search_hint": "Search date, day, lesson, type...",
        "attendance.sessions": "Total Sessions",
        "attendance.recognized_total": "Total Recognized",
        "attendance.last_date": "Last Session",
        "attendance.average": "Average Participation",
        "attendance.details": "Details",
        "attendance.detail_title": "Attendance Detail",
        "attendance.correct": "Update Status",
        "attendance.corrected": "Status updated.",
        "attendance.participation": "Participation",
        "attendance.student_search": "Search first name, last name or student number...",
        "attendance.show_photo": "Show Photo",

        "type.FACE": "Face Recognition",
        "type.EMOTION": "Emotion Analysis",
        "type.FACE_EMOTION": "Face + Emotion",

        "status.PRESENT": "Present",
        "status.ABSENT": "Absent",
        "status.LATE": "Late",
        "status.EXCUSED": "Excused",

        "lesson.label": "Lesson {number}",

        "day.MONDAY": "Monday",
        "day.TUESDAY": "Tuesday",
        "day.WEDNESDAY": "Wednesday",
        "day.THURSDAY": "Thursday",
        "day.FRIDAY": "Friday",
        "day.SATURDAY": "Saturday",
        "day.SUNDAY": "Sunday",

        "reports.title": "Absence Reports",
        "reports.limit": "Absence limit",
        "reports.absences": "Total absences",
        "reports.export": "Export to Excel",
        "reports.send_mail": "Send Warning E-mail",
        "reports.mail_result": "{sent} e-mail(s) sent, {failed} failed.",
        "reports.select_students": "Select students",

        "courses.title": "My Courses",
        "courses.new_title": "Create Course",
        "courses.edit_title": "Edit Course",
        "courses.code": "Course Code",
        "courses.name": "Course Name",
        "courses.semester": "Semester",
        "courses.description": "Description",
        "courses.lesson_times": "Lesson Times",
        "courses.add_time": "Add Time",
        "courses.day": "Day",
        "courses.start": "Start",
        "courses.end": "End",
        "courses.created": "Course created.",
        "courses.updated": "Course updated.",
        "courses.deleted": "Course deleted.",
        "courses.available": "Available Courses",
        "courses.enroll": "Enroll",
        "courses.enrolled": "Enrolled in the course.",

        "students.title": "Students",
        "students.department_filter": "Department",
        "students.face_photo": "Face Photo",
        "students.deleted": "Student deleted.",

        "dashboard.welcome": "Welcome, {name}",
        "dashboard.total_courses": "Total Courses",
        "dashboard.total_sessions": "Total Sessions",
        "dashboard.average": "Average Attendance",
        "dashboard.per_course": "Attendance by Course",
        "dashboard.emotions": "Emotions by Course",
        "dashboard.schedule": "Weekly Schedule",
        "dashboard.upcoming": "Upcoming Lessons",
        "dashboard.attended": "Classes Attended",
        "dashboard.recent": "Recent Attendance",

        "settings.title": "Settings",
        "settings.profile": "Profile",
        "settings.saved": "Your details were updated.",
        "settings.password_reset": "Send password reset e-mail",
    },
}

# Python's date.weekday(): Monday is 0
_WEEKDAY_KEYS = ("MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY", "SATURDAY", "SUNDAY")


def normalize_language(language: Optional[str]) -> str:
    language = (language or "").lower()[:2]
    return language if language in SUPPORTED_LANGUAGES else DEFAULT_LANGUAGE


def translate(key: str, language: Optional[str] = None, **values) -> str:
    """
    Look up a text.

    Args:
        key (str): Dotted key such as ``nav.home``
        language (str): tr or en; unknown languages use the default
        **values: Placeholder values

    Returns:
        str: The translated text, or the key when it is missing everywhere
    """
    language = normalize_language(language)
    text = TRANSLATIONS[language].get(key)
    if text is None:
        text = TRANSLATIONS[DEFAULT_LANGUAGE].get(key)
    if text is None:
        logger.debug("Missing translation for %s", key)
        return key
    if values:
        try:
            return text.format(**values)
        except (KeyError, IndexError):
            return text
    return text


def day_name(value, language: Optional[str] = None) -> str:
    """Weekday name of an ISO date string or a MONDAY..SUNDAY key."""
    if not value:
        return ""
    if isinstance(value, str) and value.upper() in _WEEKDAY_KEYS:
        return translate(f"day.{value.upper()}", language)
    try:
        parsed = datetime.strptime(str(value)[:10], "%Y-%m-%d").date()
    except ValueError:
        return ""
    return translate(f"day.{_WEEKDAY_KEYS[parsed.weekday()]}", language)


def attendance_type_label(attendance_type: Optional[str], language: Optional[str] = None) -> str:
    if not attendance_type:
        return "-"
    key = f"type.{attendance_type.upper()}"
    text = translate(key, language)
    return attendance_type if text == key else text


def status_label(status: Optional[str], language: Optional[str] = None) -> str:
    if not status:
        return "-"
    key = f"status.{status.upper()}"
    text = translate(key, language)
    return status if text == key else text


def lesson_label(number, language: Optional[str] = None) -> str:
    if number is None:
        return "-"
    return translate("lesson.label", language, number=number)

import os
from datetime import date, datetime, timedelta, timezone

# settings 는 import 시점에 읽히므로 DB URL 을 먼저 지정 (인메모리 SQLite)
os.environ["DB_URL_OVERRIDE"] = "sqlite://"
os.environ["ENV"] = "test"
os.environ["CORE_SUBJECTS"] = "Mathematics,English Language,Integrated Science,Social Studies"

import pytest

from database.db import Base, SessionLocal, engine
from models.classes import Class as ClassModel
from models.examinations import Examination as ExaminationModel
from models.results import Result as ResultModel
from models.sessions import ExamSession as ExamSessionModel
from models.students import Student as StudentModel
from models.subjects import Subject as SubjectModel
from models.teachers import Teacher as TeacherModel
from schemas.results import (
    CohortTotal,
    DashboardCounts,
    ExaminationItem,
    FilterOptions,
    GeneralResultRecord,
    NamedItem,
    StudentItem,
    StudentResultRow,
)
from services.aggregation import CoreSubjectSet
from services.result_store import TOTAL_PRECISION, ResultStore

CORE = ["Mathematics", "English Language", "Integrated Science", "Social Studies"]


# ==========================================================
# [가짜 저장소] 순수 로직 테스트용 인메모리 ResultStore
# ==========================================================
class FakeResultStore(ResultStore):
    def __init__(self):
        self.students = {}        # id -> (name, class_id)
        self.classes = {}         # id -> name
        self.subjects = {}        # id -> name
        self.examinations = {}    # id -> (name, date)
        self.sessions = {}        # id -> (examination_id, class_id, subject_id)
        self.results = []         # (result_id, session_id, student_id, marks)

    # ---- seed helpers ----
    def add_session(self, session_id, examination_id, class_id, subject_id):
        self.sessions[session_id] = (examination_id, class_id, subject_id)

    def add_result(self, session_id, student_id, marks):
        self.results.append((len(self.results) + 1, session_id, student_id, marks))

    # ---- ResultStore ----
    def find_sessions(self, examination_id, class_id, subject_id):
        return sorted(
            sid for sid, key in self.sessions.items()
            if key == (examination_id, class_id, subject_id)
        )

    def get_results_for_student(self, student_id):
        rows = []
        for result_id, session_id, sid, marks in self.results:
            if sid != student_id:
                continue
            exam_id, class_id, subject_id = self.sessions.get(session_id, (None, None, None))
            exam = self.examinations.get(exam_id)
            rows.append(StudentResultRow(
                result_id=result_id,
                marks=marks,
                session_id=session_id,
                examination_id=exam_id,
                class_id=class_id,
                subject_id=subject_id,
                examination_name=exam[0] if exam else None,
                examination_date=exam[1] if exam else None,
                class_name=self.classes.get(class_id),
                subject_name=self.subjects.get(subject_id),
            ))
        return rows

    def get_cohort_scores_for_session(self, session_id):
        return [marks for _, sess, _, marks in self.results if sess == session_id]

    def _totals(self, examination_id, class_id, subject_filter):
        totals = {}
        for _, session_id, student_id, marks in self.results:
            key = self.sessions.get(session_id)
            if not key or key[0] != examination_id or key[1] != class_id:
                continue
            subject_name = self.subjects.get(key[2])
            if subject_name is None or not subject_filter(subject_name):
                continue
            totals[student_id] = totals.get(student_id, 0) + marks
        return [CohortTotal(student_id=k, total_marks=round(v, TOTAL_PRECISION)) for k, v in totals.items()]

    def get_cohort_totals_for_examination_and_class(self, examination_id, class_id):
        return self._totals(examination_id, class_id, lambda name: True)

    def get_cohort_core_totals_for_examination_and_class(self, examination_id, class_id, core_subject_names):
        names = {n.strip().lower() for n in core_subject_names}
        return self._totals(examination_id, class_id, lambda name: name.strip().lower() in names)

    def get_general_results(self, session_ids=None):
        records = []
        for result_id, session_id, student_id, marks in self.results:
            if session_ids is not None and session_id not in session_ids:
                continue
            records.append(GeneralResultRecord(
                result_id=result_id, marks=marks, student_id=student_id, session_id=session_id,
            ))
        return records

    def get_student(self, student_id):
        if student_id not in self.students:
            return None
        name, class_id = self.students[student_id]
        return StudentItem(id=student_id, name=name, class_id=class_id, class_name=self.classes.get(class_id))

    def get_filter_options(self):
        return FilterOptions(
            examinations=[ExaminationItem(id=k, name=v[0], examination_date=v[1]) for k, v in self.examinations.items()],
            classes=[NamedItem(id=k, name=v) for k, v in self.classes.items()],
            subjects=[NamedItem(id=k, name=v) for k, v in self.subjects.items()],
            students=[],
            current_date=date.today(),
        )

    def count_entities(self):
        return DashboardCounts(
            students=len(self.students), subjects=len(self.subjects), sessions=len(self.sessions),
        )


def build_ama_store() -> FakeResultStore:
    """
    JHS 2A, Mid-Term
    - Ama : 80 / 70 / 60 / 50 / ICT 40 → 합계 300, 핵심 260
    - Kofi: 90 / 80 / 60 / 40 / ICT 40 → 합계 310, 핵심 270
    - Esi : 80 / 60 / 50 / 50 / ICT 50 → 합계 290, 핵심 240
    """
    store = FakeResultStore()
    store.classes = {1: "JHS 2A"}
    store.subjects = {1: "Mathematics", 2: "English Language", 3: "Integrated Science", 4: "Social Studies", 5: "ICT"}
    store.examinations = {1: ("Mid-Term", date(2024, 3, 1))}
    store.students = {1: ("Ama", 1), 2: ("Kofi", 1), 3: ("Esi", 1)}
    for subject_id in range(1, 6):
        store.add_session(subject_id, 1, 1, subject_id)
    marks = {
        1: [80, 70, 60, 50, 40],
        2: [90, 80, 60, 40, 40],
        3: [80, 60, 50, 50, 50],
    }
    for student_id, scores in marks.items():
        for subject_id, score in enumerate(scores, start=1):
            store.add_result(subject_id, student_id, score)
    return store


@pytest.fixture
def core_subjects():
    return CoreSubjectSet(CORE)


@pytest.fixture
def ama_store():
    return build_ama_store()


# ==========================================================
# [DB 픽스처] 인메모리 SQLite + TestClient
# ==========================================================
@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def seeded_db(db):
    """
    Ama 시나리오 + 다른 반(JHS 2B) 학생 + 두 번째 시험(End of Term)
    """
    now = datetime(2024, 7, 10, tzinfo=timezone.utc)

    db.add_all([
        ClassModel(id=1, name="JHS 2A"),
        ClassModel(id=2, name="JHS 2B"),
        TeacherModel(id=1, name="Mr Mensah", email="mensah@example.com"),
        ExaminationModel(id=1, name="Mid-Term", examination_date=date(2024, 3, 1)),
        ExaminationModel(id=2, name="End of Term", examination_date=date(2024, 7, 1)),
    ])
    db.add_all([
        SubjectModel(id=i, name=name)
        for i, name in enumerate(
            ["Mathematics", "English Language", "Integrated Science", "Social Studies", "ICT"], start=1
        )
    ])
    db.add_all([
        StudentModel(id=1, name="Ama", class_id=1),
        StudentModel(id=2, name="Kofi", class_id=1),
        StudentModel(id=3, name="Esi", class_id=1),
        StudentModel(id=4, name="Yaw", class_id=2),
    ])
    db.flush()

    # Mid-Term, JHS 2A: 세션 1~5 (과목 1~5)
    for subject_id in range(1, 6):
        db.add(ExamSessionModel(
            id=subject_id, examination_id=1, class_id=1, subject_id=subject_id,
            teacher_id=1, status="submitted", created_at=now - timedelta(days=120),
        ))
    # Mid-Term, JHS 2B 수학 (다른 코호트)
    db.add(ExamSessionModel(id=6, examination_id=1, class_id=2, subject_id=1, teacher_id=1, status="submitted"))
    # End of Term, JHS 2A 수학
    db.add(ExamSessionModel(id=7, examination_id=2, class_id=1, subject_id=1, teacher_id=1, status="open"))
    db.flush()

    marks = {
        1: [80, 70, 60, 50, 40],
        2: [90, 80, 60, 40, 40],
        3: [80, 60, 50, 50, 50],
    }
    result_id = 1
    for student_id, scores in marks.items():
        for session_id, score in enumerate(scores, start=1):
            db.add(ResultModel(
                id=result_id, session_id=session_id, student_id=student_id, marks=score,
                created_at=now - timedelta(days=120, minutes=result_id),
            ))
            result_id += 1
    db.add(ResultModel(id=result_id, session_id=6, student_id=4, marks=100, created_at=now - timedelta(days=100)))
    db.add(ResultModel(id=result_id + 1, session_id=7, student_id=1, marks=75, created_at=now))
    db.commit()
    return db


@pytest.fixture
def client(seeded_db):
    from fastapi.testclient import TestClient
    from main import app

    with TestClient(app) as c:
        yield c

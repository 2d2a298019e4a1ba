"""
coursegate - Video course with gated modules

Streamlit application: lessons unlock as they are watched in order, modules
unlock when the previous module's exam is passed.

Usage:
    streamlit run app.py
"""

import logging

import streamlit as st

from coursegate.classroom import (
    CourseStore,
    DataFetchError,
    ProgressNavigator,
    StoreError,
)
from coursegate.schemas import StudentContext
from coursegate.utils import load_settings
from coursegate.viewer import (
    get_exam_css,
    get_lesson_lock_message,
    get_lock_css,
    get_status_indicator,
    render_exam_question,
    render_exam_score,
    render_lock_banner,
)


# -----------------------------------------------------------------------------
# Configuration
# -----------------------------------------------------------------------------

SETTINGS = load_settings()

logging.basicConfig(
    level=SETTINGS.log_level,
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

st.set_page_config(
    page_title="coursegate",
    page_icon="🎓",
    layout="wide",
    initial_sidebar_state="expanded",
)


# -----------------------------------------------------------------------------
# Session State Initialization
# -----------------------------------------------------------------------------

def init_session_state():
    """Initialize session state variables."""
    if "store" not in st.session_state:
        st.session_state.store = CourseStore(SETTINGS.db_path)

    if "student_id" not in st.session_state:
        st.session_state.student_id = None

    if "navigator" not in st.session_state:
        st.session_state.navigator = None

    if "view_mode" not in st.session_state:
        st.session_state.view_mode = "course"  # course, exam

    if "exam_module_id" not in st.session_state:
        st.session_state.exam_module_id = None

    if "action_error" not in st.session_state:
        st.session_state.action_error = None


def build_navigator():
    """Create a navigator for the signed-in student and load the snapshot."""
    store = st.session_state.store
    student = store.get_student(st.session_state.student_id) if st.session_state.student_id else None
    nav = ProgressNavigator(store, StudentContext.from_student(student), SETTINGS)
    nav.load()
    st.session_state.navigator = nav


def report_action_error(message: str, error: Exception):
    """Keep the error on screen until the student retries; the snapshot is rebuilt then."""
    logger.error(f"{message} {error}")
    st.session_state.action_error = message
    st.session_state.navigator = None


# -----------------------------------------------------------------------------
# Sidebar
# -----------------------------------------------------------------------------

def render_sidebar():
    """Render the sidebar with student selection and next-lesson link."""
    st.sidebar.title("🎓 coursegate")

    store = st.session_state.store
    students = store.list_students()
    if not students:
        st.sidebar.info("No students yet. Compile a course and add a student first.")
        return

    labels = {s.id: f"{s.email or s.id} (level {int(s.access_level)})" for s in students}
    ids = list(labels)
    current = st.session_state.student_id if st.session_state.student_id in ids else ids[0]
    chosen = st.sidebar.selectbox("Student", ids, index=ids.index(current), format_func=labels.get)
    if chosen != st.session_state.student_id:
        st.session_state.student_id = chosen
        st.session_state.navigator = None

    nav = st.session_state.navigator
    if nav is None or nav.snapshot is None:
        return

    next_lesson = nav.get_next_lesson()
    st.sidebar.divider()
    if next_lesson:
        st.sidebar.markdown(f"**Continue with:** {next_lesson.lesson.title}")
        st.sidebar.caption(next_lesson.module.title)
    else:
        st.sidebar.success("All lessons watched!")


# -----------------------------------------------------------------------------
# Course View
# -----------------------------------------------------------------------------

def render_course_view():
    """Render modules with their lock state and lessons."""
    nav = st.session_state.navigator
    st.markdown(get_lock_css(), unsafe_allow_html=True)

    for nav_module in nav.get_navigation_tree():
        module = nav_module.module
        progress = nav_module.progress
        header = f"**{module.title}** ({progress.watched_count}/{progress.total_lessons}, {progress.percent}%)"

        with st.expander(header, expanded=not nav_module.lock_reason.is_locked):
            if nav_module.lock_reason.is_locked:
                st.markdown(render_lock_banner(nav_module.lock_reason), unsafe_allow_html=True)
                continue

            previous_title = None
            for nav_lesson in nav_module.lessons:
                col1, col2, col3 = st.columns([1, 7, 3])
                with col1:
                    st.markdown(get_status_indicator(nav_lesson))
                with col2:
                    st.markdown(nav_lesson.lesson.title)
                    if not nav_lesson.unlocked:
                        st.caption(get_lesson_lock_message(nav_lesson, previous_title))
                with col3:
                    if nav_lesson.unlocked and not nav_lesson.watched:
                        if st.button("Mark as watched", key=f"watch_{nav_lesson.lesson.id}"):
                            try:
                                nav.mark_lesson_watched(nav_lesson.lesson.id)
                            except (StoreError, PermissionError) as e:
                                report_action_error("Could not save your progress.", e)
                            st.rerun()
                previous_title = nav_lesson.lesson.title

            exam = nav.canonical_exam_for_module(module.id)
            if exam and nav.can_take_exam(module.id):
                if st.button(f"Take exam: {exam.title}", key=f"exam_{module.id}", type="primary"):
                    st.session_state.exam_module_id = module.id
                    st.session_state.view_mode = "exam"
                    st.rerun()


# -----------------------------------------------------------------------------
# Exam View
# -----------------------------------------------------------------------------

def render_exam_view():
    """Render the exam of the selected module and handle submission."""
    nav = st.session_state.navigator
    store = st.session_state.store
    module_id = st.session_state.exam_module_id

    exam = nav.canonical_exam_for_module(module_id)
    if exam is None:
        st.error("No exam available for this module.")
        return

    questions = store.list_exam_questions(exam.id)
    if not questions:
        st.error("No questions available for this exam.")
        return

    st.title(exam.title or "Exam")
    st.markdown(get_exam_css(), unsafe_allow_html=True)

    answers = {}
    for idx, question in enumerate(questions):
        key = f"q_{exam.id}_{question.id}"
        st.markdown(render_exam_question(question, idx, len(questions), st.session_state.get(key)),
                    unsafe_allow_html=True)
        choice = st.radio(
            "Answer",
            question.options,
            index=None,
            key=key,
            label_visibility="collapsed",
        )
        if choice is not None:
            answers[question.id] = choice

    col1, col2 = st.columns(2)
    with col1:
        if st.button("Back to course", use_container_width=True):
            st.session_state.view_mode = "course"
            st.rerun()
    with col2:
        if st.button("Submit exam", type="primary", use_container_width=True):
            try:
                grade, _ = nav.submit_exam(exam.id, answers)
            except (StoreError, PermissionError, ValueError) as e:
                report_action_error("Your exam could not be submitted.", e)
                st.rerun()
            else:
                st.markdown(render_exam_score(grade), unsafe_allow_html=True)


# -----------------------------------------------------------------------------
# Main App
# -----------------------------------------------------------------------------

def main():
    """Main application entry point."""
    init_session_state()
    render_sidebar()

    if st.session_state.student_id is None:
        st.info("Select a student to begin.")
        return

    if st.session_state.action_error:
        st.error(st.session_state.action_error)
        if st.button("Retry", key="retry_action"):
            st.session_state.action_error = None
            st.rerun()
        return

    if st.session_state.navigator is None:
        try:
            build_navigator()
        except DataFetchError as e:
            logger.error(f"Course load failed: {e}")
            st.error("Your progress could not be loaded.")
            if st.button("Retry"):
                st.rerun()
            return

    try:
        if st.session_state.view_mode == "exam":
            render_exam_view()
        else:
            render_course_view()
    except DataFetchError as e:
        report_action_error("Your progress could not be loaded.", e)
        st.rerun()


if __name__ == "__main__":
    main()

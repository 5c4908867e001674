from models.user import User
from models.course import Course, CourseModule, Enrollment
from models.flashcard import Flashcard
from models.quiz import Quiz, QuizQuestion, QuizAttempt
from models.study_session import StudySession
from models.conversation import AIConversation, AIMessage

__all__ = [
    "User", "Course", "CourseModule", "Enrollment", "Flashcard", "Quiz", "QuizQuestion",
    "QuizAttempt", "StudySession", "AIConversation", "AIMessage",
]

# Import models so Base metadata is aware of them
from .catalog import Grade, Topic, GradeTopic  # noqa: F401
from .users import User, Admin, UserGrade, UserTopicHistory  # noqa: F401
from .content import EducationalContent  # noqa: F401
from .quiz import Quiz, QuizResult, PracticeExam  # noqa: F401
from .flashcards import FlashcardSet, FlashcardSession  # noqa: F401
from .chat import ChatMessage, UserChatSession  # noqa: F401
from .learning import UserLearningSession  # noqa: F401

# app/services/grader.py
"""
Calificación automática por tipo de pregunta.

Todas las reglas son binarias: puntaje completo si la respuesta es correcta, cero
en otro caso. Una respuesta ausente o mal formada vale cero y nunca lanza error,
para que una pregunta mala no bloquee la calificación del resto.
"""
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)

SINGLE_CHOICE = "singlechoice"
MULTIPLE_CHOICE = "multiplechoice"
TRUE_FALSE = "truefalse"
SHORT_ANSWER = "shortanswer"
ORDERING = "ordering"
MATCHING = "matching"
FILL_BLANKS = "fillblanks"
IMAGE_BASED = "imagebased"

QUESTION_TYPES = (
    SINGLE_CHOICE, MULTIPLE_CHOICE, TRUE_FALSE, SHORT_ANSWER,
    ORDERING, MATCHING, FILL_BLANKS, IMAGE_BASED,
)

TRUE_VALUES = {"true", "1", "yes"}
FALSE_VALUES = {"false", "0", "no"}


@dataclass
class GradeResult:
    is_correct: bool
    earned_marks: float = 0.0


@dataclass
class GradingSummary:
    """Resultado agregado de un intento: respuestas calificadas por pregunta y puntaje."""
    graded_answers: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    score: float = 0.0


# ── Normalización ────────────────────────────────────────────────────────────

def normalize_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip().lower()


def to_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def to_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    text = normalize_text(value)
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    return None


def _normalized_list(value: Any) -> Optional[List[str]]:
    if not isinstance(value, list):
        return None
    return [normalize_text(item) for item in value]


# ── Reglas por tipo ──────────────────────────────────────────────────────────

def _match_scalar(correct: Any, submitted: Any) -> bool:
    if isinstance(submitted, (list, dict)):
        return False
    a, b = to_number(correct), to_number(submitted)
    if a is not None and b is not None:
        return a == b
    return normalize_text(correct) == normalize_text(submitted)


def _match_true_false(correct: Any, submitted: Any) -> bool:
    a, b = to_bool(correct), to_bool(submitted)
    if a is not None and b is not None:
        return a == b
    return normalize_text(correct) == normalize_text(submitted)


def _match_unordered(correct: Any, submitted: Any) -> bool:
    expected, given = _normalized_list(correct), _normalized_list(submitted)
    if expected is None or given is None or len(expected) != len(given):
        return False
    return Counter(expected) == Counter(given)


def _match_positional(correct: Any, submitted: Any) -> bool:
    expected, given = _normalized_list(correct), _normalized_list(submitted)
    if expected is None or given is None:
        return False
    return expected == given


def _match_short_answer(correct: Any, submitted: Any) -> bool:
    if isinstance(submitted, (list, dict)):
        return False
    acceptable = correct if isinstance(correct, list) else [correct]
    given = normalize_text(submitted)
    return any(given == normalize_text(option) for option in acceptable if option is not None)


def _match_image_based(correct: Any, submitted: Any) -> bool:
    # Con lista de respuestas se comporta como opción múltiple
    if isinstance(correct, list):
        return _match_unordered(correct, submitted)
    return _match_scalar(correct, submitted)


MATCHERS: Dict[str, Callable[[Any, Any], bool]] = {
    SINGLE_CHOICE: _match_scalar,
    TRUE_FALSE: _match_true_false,
    MULTIPLE_CHOICE: _match_unordered,
    SHORT_ANSWER: _match_short_answer,
    ORDERING: _match_positional,
    MATCHING: _match_positional,
    FILL_BLANKS: _match_positional,
    IMAGE_BASED: _match_image_based,
}


# ── API pública ──────────────────────────────────────────────────────────────

def grade(question_type: str, correct_answer: Any, submitted_answer: Any,
          marks: float = 0.0) -> GradeResult:
    """
    Califica una respuesta. `marks` se otorga completo solo si es correcta.
    """
    if submitted_answer is None or correct_answer is None:
        return GradeResult(is_correct=False)

    matcher = MATCHERS.get(question_type)
    if matcher is None:
        logger.warning(f"Tipo de pregunta desconocido: {question_type!r}")
        return GradeResult(is_correct=False)

    is_correct = matcher(correct_answer, submitted_answer)
    return GradeResult(is_correct=is_correct, earned_marks=float(marks or 0) if is_correct else 0.0)


def lookup_answer(answers: Any, question_id: Any) -> Any:
    """Las claves JSON llegan como texto; se acepta también la clave entera."""
    if not isinstance(answers, dict):
        return None
    if str(question_id) in answers:
        return answers[str(question_id)]
    return answers.get(question_id)


def grade_attempt(questions: Iterable[Any], answers: Any) -> GradingSummary:
    """
    Califica todas las preguntas de la prueba contra el mapa de respuestas enviado.
    """
    summary = GradingSummary()
    for question in questions:
        submitted = lookup_answer(answers, question.id)
        result = grade(question.question_type, question.correct_answer, submitted, question.marks)
        summary.graded_answers[str(question.id)] = {
            "student_answer": submitted,
            "is_correct": result.is_correct,
            "earned_marks": result.earned_marks,
        }
        summary.score += result.earned_marks
    return summary


def compute_percentage(score: float, max_score: float) -> float:
    if not max_score or max_score <= 0:
        return 0.0
    return score / max_score * 100


def is_passed(percentage: float, passing_score: float) -> bool:
    return percentage >= (passing_score or 0)

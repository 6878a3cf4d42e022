from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel

# --- Requests ---

class StartAttemptRequest(BaseModel):
    assignment_id: int


class AttemptProgress(BaseModel):
    """
    Cuerpo de guardado y envío. La telemetría llega tal cual la reporta el
    navegador; se normaliza en el servicio (conteos inválidos -> 0).
    """
    answers: Optional[Dict[str, Any]] = None
    tab_switches: Any = 0
    copy_attempts: Any = 0
    suspicious_activity: Any = None


# --- Attempt Responses ---

class QuestionOut(BaseModel):
    id: int
    question_type: str
    question_text: str
    options: Any = None
    marks: float
    order_number: int
    media_url: Optional[str] = None


class StartAttemptResponse(BaseModel):
    message: str
    attempt_id: int
    started_at: datetime
    duration_minutes: int
    questions: List[QuestionOut]
    resumed: bool = False


class AttemptDetailResponse(BaseModel):
    # correct_answer solo aparece en las preguntas de un intento completado
    attempt: Dict[str, Any]
    questions: List[Dict[str, Any]]


class SaveProgressResponse(BaseModel):
    ok: bool = True
    message: str


class SubmitAttemptResponse(BaseModel):
    message: str
    score: float
    max_score: float
    percentage: float
    passed: bool
    time_spent_seconds: int


# --- Assignments & Results ---

class AssignmentSummary(BaseModel):
    id: int
    test_id: int
    class_id: int
    start_date: datetime
    end_date: datetime
    test_title: str
    test_description: Optional[str] = None
    duration_minutes: int
    passing_score: float
    max_attempts: int
    class_name: str
    subject_name: Optional[str] = None
    subject_color: Optional[str] = None
    question_count: int = 0
    attempts_made: int = 0
    best_score: Optional[float] = None
    ongoing_attempt_id: Optional[int] = None


class AssignmentListResponse(BaseModel):
    assignments: List[AssignmentSummary]


class AssignmentAttempt(BaseModel):
    id: int
    started_at: datetime
    submitted_at: Optional[datetime] = None
    score: Optional[float] = None
    percentage: Optional[float] = None
    is_completed: bool


class AssignmentDetail(BaseModel):
    id: int
    test_id: int
    class_id: int
    start_date: datetime
    end_date: datetime
    is_active: bool
    test_title: str
    test_description: Optional[str] = None
    duration_minutes: int
    passing_score: float
    max_attempts: int
    class_name: str
    subject_name: Optional[str] = None
    subject_color: Optional[str] = None
    question_count: int = 0


class AssignmentDetailResponse(BaseModel):
    assignment: AssignmentDetail
    attempts: List[AssignmentAttempt]


class ResultItem(BaseModel):
    attempt_id: int
    assignment_id: int
    started_at: datetime
    submitted_at: Optional[datetime] = None
    score: Optional[float] = None
    max_score: float
    percentage: Optional[float] = None
    is_completed: bool
    test_title: str
    passing_score: float
    class_name: str
    subject_name: Optional[str] = None
    subject_color: Optional[str] = None


class ResultListResponse(BaseModel):
    results: List[ResultItem]

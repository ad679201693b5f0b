import logging

from fastapi import APIRouter, HTTPException, Request, Response

from studyhelper.schemas import (
    AggregateTasksRequest,
    AggregationResult,
    AnswerRequest,
    ConfigureQuizRequest,
    QuizSessionSnapshot,
    QuizState,
    Task,
)
from studyhelper.services.quiz_session import QuizSession
from studyhelper.services.task_aggregator import resolve_group_ids

logger = logging.getLogger(__name__)

router = APIRouter(tags=["quiz"])


def _services(request: Request):
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(status_code=500, detail="Services not initialized")
    return services


def _session(request: Request, session_id: str) -> QuizSession:
    session = _services(request).get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Quiz session not found: {session_id}")
    return session


@router.post("/tasks/aggregate", response_model=AggregationResult)
async def aggregate_tasks(body: AggregateTasksRequest, request: Request):
    """Collect upcoming tasks from the caller's groups, soonest first."""
    group_ids = body.group_ids if body.group_ids is not None else resolve_group_ids(body.profile)
    return await _services(request).aggregator.aggregate(group_ids)


@router.post("/quiz/sessions", response_model=QuizSessionSnapshot, status_code=201)
async def create_session(request: Request):
    services = _services(request)
    session = services.new_session()
    logger.info(f"Created quiz session {session.session_id}")
    return session.snapshot()


@router.get("/quiz/sessions/{session_id}", response_model=QuizSessionSnapshot)
async def get_session(session_id: str, request: Request):
    return _session(request, session_id).snapshot()


@router.delete("/quiz/sessions/{session_id}", status_code=204)
async def close_session(session_id: str, request: Request):
    """Close the session (view unmounted); any in-flight result is discarded."""
    session = _session(request, session_id)
    session.close()
    _services(request).sessions.pop(session_id, None)
    return Response(status_code=204)


@router.post("/quiz/sessions/{session_id}/task", response_model=QuizSessionSnapshot)
async def select_task(session_id: str, task: Task, request: Request):
    session = _session(request, session_id)
    await session.select_task(task)
    return session.snapshot()


@router.post("/quiz/sessions/{session_id}/configure", response_model=QuizSessionSnapshot)
async def configure_quiz(session_id: str, body: ConfigureQuizRequest, request: Request):
    session = _session(request, session_id)
    session.configure(body.question_kind, body.extra_context)
    return session.snapshot()


@router.post("/quiz/sessions/{session_id}/generate", response_model=QuizSessionSnapshot)
async def generate_quiz(session_id: str, request: Request):
    """
    Generate a quiz for the selected task.
    
    A request arriving while another generation is running is ignored and
    answered with the current snapshot.
    """
    session = _session(request, session_id)
    await session.generate()
    return session.snapshot()


@router.post("/quiz/sessions/{session_id}/answers", response_model=QuizSessionSnapshot)
async def answer_question(session_id: str, body: AnswerRequest, request: Request):
    session = _session(request, session_id)
    try:
        session.answer(body.question_id, body.response)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return session.snapshot()


@router.post("/quiz/sessions/{session_id}/submit", response_model=QuizSessionSnapshot)
async def submit_quiz(session_id: str, request: Request):
    session = _session(request, session_id)
    if session.state is QuizState.ACTIVE and not session.answers:
        raise HTTPException(status_code=400, detail="Answer at least one question before submitting")
    await session.submit()
    return session.snapshot()


@router.post("/quiz/sessions/{session_id}/reset", response_model=QuizSessionSnapshot)
async def reset_quiz(session_id: str, request: Request):
    """Discard the graded quiz so a new one can be generated for the same task."""
    session = _session(request, session_id)
    session.reset()
    return session.snapshot()

import json
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from studyhelper.core.config import settings
from studyhelper.core.exceptions import ConfigurationError, TransportError
from studyhelper.main import Services, create_app
from studyhelper.services.grading import GradingEngine, ShortAnswerGrader
from studyhelper.services.quiz_generator import QuizGenerator
from studyhelper.services.task_aggregator import TaskAggregator
from tests.helpers import FakeGenerativeClient, as_model_text, grading_payload, mcq_payload, short_payload

API = settings.API_V1_STR


class StaticTaskProvider:
    def __init__(self, tasks_by_group):
        self.tasks_by_group = tasks_by_group
    
    async def get_tasks_for_group(self, group_id):
        return self.tasks_by_group.get(group_id, [])


def due_in(days):
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


TASK_BODY = {
    "id": "t1",
    "title": "Binary Trees",
    "description": "Traversals",
    "due_at": "2030-01-01T00:00:00Z",
    "group_id": "A",
    "days_left": 2,
}


@pytest.fixture
def llm():
    return FakeGenerativeClient()


@pytest.fixture
def api(llm):
    provider = StaticTaskProvider({
        "A": [
            {"id": "a1", "title": "Later", "dueAt": due_in(5)},
            {"id": "a0", "title": "Past", "dueAt": due_in(-1)},
        ],
        "B": [{"id": "b1", "title": "Sooner", "dueAt": due_in(1)}],
        "M": [{"id": "m1", "title": "Managed", "dueAt": due_in(3)}],
    })
    services = Services(
        aggregator=TaskAggregator(provider),
        generator=QuizGenerator(llm),
        grading_engine=GradingEngine(ShortAnswerGrader(llm)),
    )
    with TestClient(create_app(services=services, configure_logging=False)) as client:
        yield client


def new_session(api):
    response = api.post(f"{API}/quiz/sessions")
    assert response.status_code == 201
    return response.json()["session_id"]


def test_health(api):
    response = api.get("/health")
    
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert "X-Request-ID" in response.headers


def test_aggregate_orders_upcoming_tasks(api):
    response = api.post(f"{API}/tasks/aggregate", json={"group_ids": ["A", "B"]})
    
    assert response.status_code == 200
    body = response.json()
    assert [t["id"] for t in body["tasks"]] == ["b1", "a1"]
    assert body["no_eligible_groups"] is False


def test_aggregate_resolves_groups_from_profile(api):
    profile = {"uid": "u1", "role": "cr", "enrolled_groups": ["A"], "managed_groups": ["M"]}
    
    response = api.post(f"{API}/tasks/aggregate", json={"profile": profile})
    
    assert [t["id"] for t in response.json()["tasks"]] == ["m1"]


def test_aggregate_without_groups(api):
    response = api.post(f"{API}/tasks/aggregate", json={"group_ids": []})
    
    assert response.json()["no_eligible_groups"] is True
    assert api.post(f"{API}/tasks/aggregate", json={}).status_code == 422


def test_mcq_session_flow(api, llm):
    llm.responses.append(as_model_text(mcq_payload(correct=2)))
    session_id = new_session(api)
    base = f"{API}/quiz/sessions/{session_id}"
    
    assert api.post(f"{base}/task", json=TASK_BODY).json()["state"] == "idle"
    assert api.post(f"{base}/configure", json={"question_kind": "MCQ"}).status_code == 200
    
    generated = api.post(f"{base}/generate").json()
    assert generated["state"] == "active"
    assert len(generated["quiz"]["questions"]) == 15
    assert "correct_option_index" not in generated["quiz"]["questions"][0]
    
    for qid in range(1, 11):
        api.post(f"{base}/answers", json={"question_id": qid, "response": 2})
    
    submitted = api.post(f"{base}/submit").json()
    assert submitted["state"] == "submitted"
    assert submitted["report"]["percentage"] == 67
    assert submitted["quiz"]["questions"][0]["correct_option_index"] == 2
    
    assert api.post(f"{base}/reset").json()["state"] == "idle"


def test_short_answer_session_flow(api, llm):
    llm.responses.extend([json.dumps(short_payload()), json.dumps(grading_payload())])
    session_id = new_session(api)
    base = f"{API}/quiz/sessions/{session_id}"
    api.post(f"{base}/task", json=TASK_BODY)
    api.post(f"{base}/configure", json={"question_kind": "short", "extra_context": "Focus on BFS"})
    
    api.post(f"{base}/generate")
    api.post(f"{base}/answers", json={"question_id": 2, "response": "Level order traversal"})
    api.post(f"{base}/answers", json={"question_id": 3, "response": "Visit root, left, right"})
    report = api.post(f"{base}/submit").json()["report"]
    
    assert report["kind"] == "short"
    assert report["total_score"] == 8
    assert "Focus on BFS" in llm.requests[0].prompt


def test_submit_requires_an_answer(api, llm):
    llm.responses.append(json.dumps(mcq_payload()))
    base = f"{API}/quiz/sessions/{new_session(api)}"
    api.post(f"{base}/task", json=TASK_BODY)
    api.post(f"{base}/generate")
    
    response = api.post(f"{base}/submit")
    
    assert response.status_code == 400
    assert api.get(base).json()["state"] == "active"


def test_invalid_answer_is_unprocessable(api, llm):
    llm.responses.append(json.dumps(mcq_payload()))
    base = f"{API}/quiz/sessions/{new_session(api)}"
    api.post(f"{base}/task", json=TASK_BODY)
    api.post(f"{base}/generate")
    
    response = api.post(f"{base}/answers", json={"question_id": 1, "response": 7})
    
    assert response.status_code == 422


def test_generate_without_task_conflicts(api):
    base = f"{API}/quiz/sessions/{new_session(api)}"
    
    response = api.post(f"{base}/generate")
    
    assert response.status_code == 409
    assert response.json()["error_type"] == "invalid_transition"
    assert response.json()["state"] == "idle"


@pytest.mark.parametrize(
    "scripted, status, error_type",
    [
        (ConfigurationError("Groq API key not configured"), 503, "configuration"),
        (TransportError("HTTP 500"), 502, "transport"),
        ("Sorry, I cannot help with that.", 502, "contract_violation"),
    ],
)
def test_generation_errors_map_to_status(api, llm, scripted, status, error_type):
    llm.responses.append(scripted)
    base = f"{API}/quiz/sessions/{new_session(api)}"
    api.post(f"{base}/task", json=TASK_BODY)
    
    response = api.post(f"{base}/generate")
    
    assert response.status_code == status
    assert response.json()["error_type"] == error_type
    snapshot = api.get(base).json()
    assert snapshot["state"] == "idle"
    assert snapshot["selected_task"]["id"] == "t1"
    assert snapshot["error"]


def test_unknown_session_and_close(api):
    assert api.get(f"{API}/quiz/sessions/missing").status_code == 404
    
    session_id = new_session(api)
    assert api.delete(f"{API}/quiz/sessions/{session_id}").status_code == 204
    assert api.get(f"{API}/quiz/sessions/{session_id}").status_code == 404


def test_untitled_task_is_rejected(api):
    base = f"{API}/quiz/sessions/{new_session(api)}"
    
    response = api.post(f"{base}/task", json={**TASK_BODY, "title": " "})
    
    assert response.status_code == 422
    assert api.get(base).json()["selected_task"] is None


def test_answer_to_unknown_question_conflicts(api, llm):
    llm.responses.append(json.dumps(mcq_payload()))
    base = f"{API}/quiz/sessions/{new_session(api)}"
    api.post(f"{base}/task", json=TASK_BODY)
    api.post(f"{base}/generate")
    
    response = api.post(f"{base}/answers", json={"question_id": 99, "response": 0})
    
    assert response.status_code == 409
    assert response.json()["error_type"] == "invalid_transition"
    assert api.get(base).json()["answers"] == {}


def test_least_recently_used_session_is_evicted(api):
    api.app.state.services.max_sessions = 2
    first = new_session(api)
    second = new_session(api)
    
    # touching the first makes the second the eviction candidate
    assert api.get(f"{API}/quiz/sessions/{first}").status_code == 200
    evicted = api.app.state.services.sessions[second]
    third = new_session(api)
    
    assert evicted.closed
    assert api.get(f"{API}/quiz/sessions/{second}").status_code == 404
    assert api.get(f"{API}/quiz/sessions/{first}").status_code == 200
    assert api.get(f"{API}/quiz/sessions/{third}").status_code == 200

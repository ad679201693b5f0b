import asyncio
import json
from datetime import datetime, timedelta, timezone

from studyhelper.schemas import Task

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


def mcq_payload(count=15, correct=0):
    return {
        "questions": [
            {
                "id": i,
                "question": f"Question {i}?",
                "options": ["Alpha", "Beta", "Gamma", "Delta"],
                "correctAnswer": correct,
                "explanation": f"Because of reason {i}",
            }
            for i in range(1, count + 1)
        ]
    }


def short_payload(count=3, marks=5):
    return {
        "questions": [
            {
                "id": i,
                "question": f"Explain concept {i}.",
                "marks": marks,
                "sampleAnswer": f"Concept {i} is explained like this.",
                "markingCriteria": [f"Defines concept {i}", "Gives an example"],
            }
            for i in range(1, count + 1)
        ]
    }


def grading_payload(marks=(0, 3, 5), total=5):
    results = [
        {
            "questionId": i,
            "marksAwarded": m,
            "totalMarks": total,
            "feedback": f"Feedback {i}",
        }
        for i, m in enumerate(marks, 1)
    ]
    return {
        "results": results,
        "totalScore": sum(marks),
        "totalPossible": total * len(marks),
        "overallFeedback": "Keep practising.",
    }


def as_model_text(payload) -> str:
    """Wrap a payload the way chatty models do."""
    return f"Sure! Here is your quiz:\n\n{json.dumps(payload, indent=2)}\n\nGood luck!"


class FakeGenerativeClient:
    """Replays scripted responses; exceptions in the script are raised."""
    
    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.requests = []
    
    async def complete(self, request):
        self.requests.append(request)
        item = self.responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item


class GatedGenerativeClient(FakeGenerativeClient):
    """Like FakeGenerativeClient but each call waits until ``release()``."""
    
    def __init__(self, responses=None):
        super().__init__(responses)
        self.started = asyncio.Event()
        self._gate = asyncio.Event()
    
    def release(self):
        self._gate.set()
    
    async def complete(self, request):
        self.started.set()
        await self._gate.wait()
        return await super().complete(request)


def make_task(task_id="t1", title="Binary Trees", days=2, group_id="A", description="Traversals"):
    return Task(
        id=task_id,
        title=title,
        description=description,
        due_at=NOW + timedelta(days=days),
        group_id=group_id,
        days_left=days,
    )

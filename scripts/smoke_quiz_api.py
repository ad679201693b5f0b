"""
End-to-end smoke run against a live API (uvicorn studyhelper.main:app).

Creates a session, picks the first upcoming task of the given groups,
generates a quiz, answers every question and prints the grade.
"""

import argparse
import time

import httpx

BASE_URL = "http://localhost:8000/api/v1"


def answer_for(question: dict, kind: str):
    if kind == "mcq":
        return 0
    return f"My answer to: {question['prompt']}"


def run(group_ids, kind: str):
    with httpx.Client(base_url=BASE_URL, timeout=120.0) as client:
        print(f"\n🔹 Aggregating tasks for groups {group_ids}...")
        response = client.post("/tasks/aggregate", json={"group_ids": group_ids})
        response.raise_for_status()
        tasks = response.json()["tasks"]
        if not tasks:
            print("❌ No upcoming tasks found")
            return
        task = tasks[0]
        print(f"   {len(tasks)} tasks, using: {task['title']} ({task['days_left']} days left)")
        
        session = client.post("/quiz/sessions").json()
        sid = session["session_id"]
        
        client.post(f"/quiz/sessions/{sid}/task", json=task).raise_for_status()
        client.post(f"/quiz/sessions/{sid}/configure", json={"question_kind": kind}).raise_for_status()
        
        print(f"\n🚀 Generating {kind} quiz...")
        start = time.time()
        response = client.post(f"/quiz/sessions/{sid}/generate")
        if response.status_code != 200:
            print(f"❌ Generation failed: {response.status_code} {response.text}")
            return
        quiz = response.json()["quiz"]
        print(f"✅ {len(quiz['questions'])} questions in {time.time() - start:.2f}s")
        
        for question in quiz["questions"]:
            client.post(
                f"/quiz/sessions/{sid}/answers",
                json={"question_id": question["id"], "response": answer_for(question, kind)},
            ).raise_for_status()
        
        print("\n🎓 Submitting...")
        response = client.post(f"/quiz/sessions/{sid}/submit")
        if response.status_code != 200:
            print(f"❌ Grading failed: {response.status_code} {response.text}")
            return
        report = response.json()["report"]
        if report["kind"] == "mcq":
            print(f"✅ {report['correct_count']}/{report['total_count']} ({report['percentage']}%)")
        else:
            print(f"✅ {report['total_score']}/{report['total_possible']}")
            print(f"   {report['overall_feedback'][:100]}")


def main():
    parser = argparse.ArgumentParser(description="Smoke test the quiz API")
    parser.add_argument("groups", nargs="+", help="Group ids to aggregate tasks from")
    parser.add_argument("--kind", default="mcq", choices=["mcq", "short"])
    args = parser.parse_args()
    
    try:
        run(args.groups, args.kind)
    except httpx.ConnectError:
        print("❌ Error: Could not connect to server. Is uvicorn running?")


if __name__ == "__main__":
    main()

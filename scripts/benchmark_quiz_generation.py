"""
Quiz Generation Benchmark
Measures generation latency and how often the model breaks the quiz contract.
"""

import asyncio
import time
import sys
import argparse
from collections import Counter
from typing import Any, Dict
from statistics import mean, median

from studyhelper.core.config import settings
from studyhelper.core.constants import get_question_kinds, normalize_question_kind
from studyhelper.core.exceptions import GenerationError
from studyhelper.core.llm import GenerativeClient
from studyhelper.services.quiz_generator import QuizGenerator


class QuizBenchmark:
    """Benchmark quiz generation against the live generative service."""
    
    def __init__(self, client: GenerativeClient):
        self.generator = QuizGenerator(client)
    
    async def run(
        self,
        topic: str,
        description: str,
        question_kind: str,
        iterations: int = 5
    ) -> Dict[str, Any]:
        kind = normalize_question_kind(question_kind)
        
        print("=" * 70)
        print("QUIZ GENERATION BENCHMARK")
        print("=" * 70)
        print(f"\nModel: {settings.GROQ_MODEL}")
        print(f"Topic: {topic}")
        print(f"Kind: {kind.value}")
        print(f"Iterations: {iterations}\n")
        
        times = []
        failures: Counter = Counter()
        
        for i in range(iterations):
            start = time.time()
            try:
                quiz = await self.generator.generate_quiz(topic, description, kind)
                elapsed = time.time() - start
                times.append(elapsed)
                print(f"   Iteration {i+1}/{iterations}: {elapsed:.2f}s ({len(quiz.questions)} questions)")
            except GenerationError as e:
                failures[type(e).__name__] += 1
                print(f"   Iteration {i+1}/{iterations}: {type(e).__name__} - {str(e)[:60]}")
        
        result: Dict[str, Any] = {
            "iterations": iterations,
            "successful": len(times),
            "failures": dict(failures),
        }
        if times:
            result.update(
                mean_time=mean(times),
                median_time=median(times),
                min_time=min(times),
                max_time=max(times),
            )
        
        self._print_summary(result)
        return result
    
    def _print_summary(self, result: Dict[str, Any]) -> None:
        print("\n📊 SUMMARY")
        print("=" * 70)
        print(f"   Success rate: {result['successful']}/{result['iterations']}")
        
        if result["successful"]:
            print(f"   Mean time: {result['mean_time']:.2f}s")
            print(f"   Median time: {result['median_time']:.2f}s")
            print(f"   Range: {result['min_time']:.2f}s - {result['max_time']:.2f}s")
        else:
            print("   ❌ All attempts failed")
        
        for kind, count in sorted(result["failures"].items()):
            print(f"   {kind}: {count}")
        
        print("\n" + "=" * 70)


def main():
    parser = argparse.ArgumentParser(description="Benchmark quiz generation")
    parser.add_argument("topic", help="Task title to generate a quiz for")
    parser.add_argument("--description", default="", help="Task description")
    parser.add_argument(
        "--kind",
        default="mcq",
        choices=get_question_kinds(),
        help="Question kind (default: mcq)"
    )
    parser.add_argument(
        "--iterations",
        type=int,
        default=5,
        help="Number of generation calls (default: 5)"
    )
    
    args = parser.parse_args()
    
    client = GenerativeClient()
    if not client.is_configured:
        print("❌ Error: GROQ_API_KEY not set in .env")
        sys.exit(1)
    
    benchmark = QuizBenchmark(client)
    asyncio.run(benchmark.run(args.topic, args.description, args.kind, args.iterations))


if __name__ == "__main__":
    main()

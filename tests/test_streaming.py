"""Tests for core.streaming: NDJSON match stream over in-memory repositories."""
from __future__ import annotations

import asyncio
import json

from core.matching_orchestrator import MatchingOrchestrator
from core.streaming import event_line, make_match_stream, ndjson_line
from model.claim import Claim
from model.matching import SemanticMatchRequest, SemanticMatchResponse
from model.reference import ReferenceDocument


class MemoryJobs:
    def __init__(self) -> None:
        self.statuses: list[str] = []
        self.progress: list[tuple[int, int]] = []

    async def set_status(self, job_id: str, status: str) -> None:
        self.statuses.append(status)

    async def save_progress(self, job_id: str, *, processed: int, total: int) -> None:
        self.progress.append((processed, total))


class MemoryResults:
    def __init__(self) -> None:
        self.claims: list[Claim] = []

    async def append(self, job_id: str, claim: Claim) -> None:
        self.claims.append(claim)


class AlwaysFirst:
    async def __call__(self, request: SemanticMatchRequest) -> SemanticMatchResponse:
        return SemanticMatchResponse(matched=True, referenceIndex=1, confidence=0.8, reasoning="ok")


REFS = [ReferenceDocument(id="r1", alias="Trial", fullText="relapse rate reduced")]


def _stream(jobs: MemoryJobs, results: MemoryResults, claims: list[Claim]):
    return make_match_stream(
        job_id="job-1",
        orchestrator=MatchingOrchestrator(AlwaysFirst()),
        jobs=jobs,
        results=results,
        claims=claims,
        references=REFS,
        facts=[],
    )


def _decode(lines: list[bytes]) -> list[dict]:
    return [json.loads(line) for line in lines]


class TestNdjson:
    def test_one_compact_line(self) -> None:
        assert ndjson_line({"a": 1, "b": [1, 2]}) == b'{"a":1,"b":[1,2]}\n'

    def test_event_envelope(self) -> None:
        assert json.loads(event_line("done", {})) == {"type": "done", "payload": {}}


class TestMatchStream:
    def test_full_run(self) -> None:
        jobs, results = MemoryJobs(), MemoryResults()
        claims = [Claim(id="a", text="Relapse rate reduced"), Claim(id="b", text="Unrelated words")]

        async def collect():
            return [line async for line in _stream(jobs, results, claims)]

        events = _decode(asyncio.run(collect()))
        types = [e["type"] for e in events]
        assert types.count("progress") == 2
        assert types.count("claim") == 2
        assert types[-1] == "done"

        done = events[-1]["payload"]
        assert done["jobId"] == "job-1"
        assert done["stats"]["total"] == 2
        assert done["stats"]["matched"] == 1
        assert done["stats"]["matchRate"] == 50.0

        by_id = {e["payload"]["id"]: e["payload"] for e in events if e["type"] == "claim"}
        assert by_id["a"]["match"]["matchTier"] == 2
        assert by_id["b"]["match"]["reason"] == "no_overlap"

        assert [c.id for c in results.claims] == [e["payload"]["id"] for e in events if e["type"] == "claim"]
        assert jobs.progress[-1] == (2, 2)
        assert jobs.statuses == ["matching", "finished"]

    def test_closing_stream_cancels_job(self) -> None:
        jobs, results = MemoryJobs(), MemoryResults()
        claims = [Claim(id=str(i), text="Relapse rate reduced") for i in range(5)]

        async def first_then_close():
            stream = _stream(jobs, results, claims)
            first = await stream.__anext__()
            await stream.aclose()
            return first

        first = json.loads(asyncio.run(first_then_close()))
        assert first["type"] == "progress"
        assert jobs.statuses == ["matching", "cancelled"]

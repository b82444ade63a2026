# model/job.py
from typing import Literal
from pydantic import BaseModel

JobStatus = Literal[
    "pending",
    "matching",
    "finished",
    "cancelled",
    "failed",
]


class Job(BaseModel):
    id: str
    status: JobStatus
    processed: int = 0
    total: int = 0

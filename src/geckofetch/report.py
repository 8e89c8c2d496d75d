from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from geckofetch.installer import RunResult


class Outcome(str, Enum):
    ALL_SUCCESS = "all_success"
    PARTIAL = "partial"
    ALL_FAILED = "all_failed"


@dataclass(frozen=True)
class Summary:
    outcome: Outcome
    messages: list[str]
    exit_code: int


def classify(result: RunResult) -> Outcome:
    if not result.failed:
        return Outcome.ALL_SUCCESS
    if result.succeeded:
        return Outcome.PARTIAL
    return Outcome.ALL_FAILED


def failure_message(failed: list[str]) -> str:
    return f"Geckodriver binary installation failed for {', '.join(failed)}."


def success_message(version: str, succeeded: list[str]) -> str:
    noun = "binary" if len(succeeded) == 1 else "binaries"
    return (
        f"Geckodriver {noun} successfully installed for version {version} on {', '.join(succeeded)}."
    )


def summarize(result: RunResult) -> Summary:
    outcome = classify(result)
    messages: list[str] = []
    if result.failed:
        messages.append(failure_message(result.failed))
    if result.succeeded:
        messages.append(success_message(result.version, result.succeeded))
    exit_code = 0 if not result.failed else 1
    return Summary(outcome=outcome, messages=messages, exit_code=exit_code)

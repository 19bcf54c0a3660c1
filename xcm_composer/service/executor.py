"""Executor protocol for submitting programs to a chain.

This module defines the interface for handing a built program to whatever
actually executes it. The protocol allows different implementations:
- HttpExecutor: Production, posts the program to an executor endpoint
- MockExecutor: Testing, records submissions in memory
"""

import hashlib
import logging
import os
from typing import Protocol

import httpx
from pydantic import BaseModel, ValidationError

from xcm_composer.program.ir import Location, Program

logger = logging.getLogger(__name__)

DEFAULT_EXECUTOR_URL = "http://localhost:9944/xcm/execute"
DEFAULT_EXECUTOR_TIMEOUT = 30.0


class ExecutionRequest(BaseModel):
    """Document posted to an executor endpoint."""

    program: Program
    destination: Location | None = None  # None means execute locally


class DispatchReceipt(BaseModel):
    """Acknowledgement that an executor accepted a program."""

    receipt_id: str
    destination: Location | None = None
    instructions: int


class DispatchError(Exception):
    """Raised when an executor rejects or cannot receive a program."""

    pass


class Executor(Protocol):
    """Protocol for submitting programs for execution.

    Implementations should:
    - Submit the program exactly once (no retries)
    - Return a DispatchReceipt on acceptance
    - Raise DispatchError on rejection or transport failure
    """

    def submit(self, program: Program, destination: Location | None = None) -> DispatchReceipt:
        """Submit a program.

        Args:
            program: Top-level program to execute
            destination: Where to send it, or None to execute locally

        Returns:
            DispatchReceipt from the executor

        Raises:
            DispatchError: If the program was not accepted
        """
        ...


def receipt_id_for(program: Program, sequence: int) -> str:
    """Deterministic receipt id: hash of the program JSON and a sequence number."""
    digest = hashlib.blake2b(digest_size=16)
    digest.update(program.to_json(indent=None).encode())
    digest.update(sequence.to_bytes(8, "little"))
    return "0x" + digest.hexdigest()


class MockExecutor:
    """In-memory Executor for testing.

    Usage:
        executor = MockExecutor()
        service = DispatchService(executor=executor)
        service.dispatch(program)
        assert len(executor.submissions) == 1
    """

    def __init__(self, reject_with: str | None = None) -> None:
        self.submissions: list[ExecutionRequest] = []
        self.reject_with = reject_with

    def reject(self, reason: str) -> None:
        """Reject every following submission with ``reason``."""
        self.reject_with = reason

    def submit(self, program: Program, destination: Location | None = None) -> DispatchReceipt:
        request = ExecutionRequest(program=program, destination=destination)
        self.submissions.append(request)
        if self.reject_with is not None:
            raise DispatchError(self.reject_with)
        return DispatchReceipt(
            receipt_id=receipt_id_for(program, len(self.submissions)),
            destination=destination,
            instructions=len(program),
        )


class HttpExecutor:
    """Executor that posts programs to an HTTP endpoint with httpx.

    Configuration comes from the environment unless given explicitly:
    - XCM_EXECUTOR_URL: endpoint accepting ExecutionRequest JSON
    - XCM_EXECUTOR_TIMEOUT: request timeout in seconds
    """

    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        auth_token: str | None = None,
    ):
        self.url = url or os.getenv("XCM_EXECUTOR_URL", DEFAULT_EXECUTOR_URL)
        if timeout is None:
            timeout = float(os.getenv("XCM_EXECUTOR_TIMEOUT", str(DEFAULT_EXECUTOR_TIMEOUT)))
        self.timeout = timeout
        self.auth_token = auth_token

    def submit(self, program: Program, destination: Location | None = None) -> DispatchReceipt:
        request = ExecutionRequest(program=program, destination=destination)
        headers = {"Content-Type": "application/json"}
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"

        logger.info(f"Submitting {len(program)}-instruction program to {self.url}")
        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(
                    self.url,
                    content=request.model_dump_json(),
                    headers=headers,
                )
        except httpx.TimeoutException as e:
            raise DispatchError(f"Executor request timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise DispatchError(f"Failed to call executor: {e}") from e

        if response.status_code != 200:
            raise DispatchError(f"HTTP {response.status_code}: {response.text}")

        try:
            return DispatchReceipt.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise DispatchError(f"Malformed executor receipt: {e}") from e

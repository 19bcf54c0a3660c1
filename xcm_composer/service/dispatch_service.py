"""Dispatch service - validates programs and hands them to an executor.

This service:
1. Validates the program (ProgramValidator)
2. Submits it once through an Executor (HTTP or mock)
3. Returns a structured DispatchResult

A program that fails validation never reaches the executor.
"""

import logging
from dataclasses import dataclass, field

from xcm_composer.program.ir import Location, Program
from xcm_composer.program.validator import validate_program
from xcm_composer.service.executor import DispatchError, DispatchReceipt, Executor

logger = logging.getLogger(__name__)


@dataclass
class DispatchResult:
    """Result of a dispatch attempt."""

    status: str  # "success", "error"
    receipt: DispatchReceipt | None = None
    error: str | None = None
    validation_errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == "success"


class DispatchService:
    """Service for dispatching built programs."""

    def __init__(self, executor: Executor):
        self.executor = executor

    def dispatch(self, program: Program, destination: Location | None = None) -> DispatchResult:
        """Validate ``program`` and submit it to the executor.

        Args:
            program: Top-level program to execute
            destination: Where to send it, or None to execute locally

        Returns:
            DispatchResult with the receipt, or the reason it was not accepted
        """
        validation = validate_program(program)
        if not validation.is_valid:
            logger.warning(f"Refusing to dispatch invalid program: {validation.summary()}")
            return DispatchResult(
                status="error",
                error="Program failed validation",
                validation_errors=[f"{e.path}: {e.message}" for e in validation.errors],
            )

        try:
            receipt = self.executor.submit(program, destination)
        except DispatchError as e:
            logger.error(f"Dispatch rejected: {e}")
            return DispatchResult(status="error", error=str(e))

        logger.info(f"Dispatched program, receipt {receipt.receipt_id}")
        return DispatchResult(status="success", receipt=receipt)

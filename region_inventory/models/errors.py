# Copyright (c) 2026 Region Inventory contributors.
# Licensed under the Apache License, Version 2.0.

"""Error descriptor and retry policy models."""

from pydantic import BaseModel, ConfigDict, Field

from .enums import ErrorCategory, ErrorCode


class ErrorDescriptor(BaseModel):
    """Structured, user-presentable description of a failure.

    Produced by the error classifier and never mutated afterwards.
    ``recoverable`` tells an operator whether fixing something and trying
    again can succeed; ``retryable`` tells the retry executor whether an
    identical automatic retry is worth attempting.
    """

    model_config = ConfigDict(frozen=True)

    code: ErrorCode = Field(..., description="Machine-readable error code")
    category: ErrorCategory = Field(..., description="Operation family that failed")
    message: str = Field(..., description="Human-readable description of the failure")
    remediation: str = Field(..., description="What the operator should do about it")
    recoverable: bool = Field(..., description="Whether the operation can succeed after a fix")
    retryable: bool = Field(
        default=True,
        description="Whether an automatic retry of the same call may succeed",
    )
    retry_after_seconds: int | None = Field(
        default=None,
        ge=0,
        description="Suggested wait before retrying, if known",
    )

    def to_response(self) -> dict:
        """Serialize for an API error body."""
        body = {
            "error": self.code.value,
            "message": self.message,
            "remediation": self.remediation,
            "recoverable": self.recoverable,
        }
        if self.retry_after_seconds is not None:
            body["retry_after_seconds"] = self.retry_after_seconds
        return body


class RetryPolicy(BaseModel):
    """Exponential backoff configuration for retried operations."""

    model_config = ConfigDict(frozen=True)

    max_retries: int = Field(default=3, ge=0, description="Retries after the first attempt")
    base_delay_ms: int = Field(default=1000, ge=0, description="Delay before the first retry")
    max_delay_ms: int = Field(default=10000, ge=0, description="Upper bound for any single delay")
    backoff_multiplier: float = Field(default=2.0, gt=1.0, description="Growth factor per attempt")
    jitter: bool = Field(default=False, description="Add up to 25% random jitter to each delay")

    def delay_ms(self, attempt: int) -> float:
        """Backoff delay in milliseconds after the given 0-indexed attempt."""
        return min(
            self.base_delay_ms * (self.backoff_multiplier ** attempt),
            self.max_delay_ms,
        )

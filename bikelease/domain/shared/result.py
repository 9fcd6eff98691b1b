"""Explicit success/failure values threaded between pipeline stages."""

from dataclasses import dataclass
from typing import Generic, TypeVar

from bikelease.domain.shared.error import ClassifiedError

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    error: ClassifiedError


StageResult = Ok[T] | Err

"""
Shared fixtures.

No test talks to a real provider: orchestration tests use FakeProvider,
client tests run httpx against httpx.MockTransport.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Optional, Sequence, Union

import pytest

from expense_ai.config.settings import OperationBudget, OrchestratorConfig, ProviderConfig
from expense_ai.models.expense import ExpenseRecord
from expense_ai.models.provider import OperationKind, ProviderErrorKind
from expense_ai.providers.base import GenerationRequest, ProviderClient, ProviderError


Reply = Union[str, Exception]

BASE_DATE = datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc)


def make_provider_config(name: str, configured: bool = True, confidence: float = 0.9) -> ProviderConfig:
    return ProviderConfig(
        name=name,
        api_key="test-key" if configured else None,
        base_url="https://fake.invalid",
        models=["fake-model"],
        default_confidence=confidence,
    )


class FakeProvider(ProviderClient):
    """
    In-memory provider returning scripted replies.

    Each call consumes the next reply; the last one repeats. An
    Exception reply is raised instead of returned.
    """

    def __init__(
        self,
        name: str,
        replies: Sequence[Reply] = ("",),
        configured: bool = True,
        confidence: float = 0.9,
        delay_s: float = 0.0,
    ):
        super().__init__(make_provider_config(name, configured, confidence))
        self.display_name = name.capitalize()
        self._replies = list(replies)
        self._delay_s = delay_s
        self.requests: list[GenerationRequest] = []

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def _targets(self):
        return [("fake-model", None)]

    def _build_call(self, model, version, request):
        raise NotImplementedError

    def _extract_text(self, data: Any) -> Optional[str]:
        return None

    async def generate(self, request: GenerationRequest) -> str:
        self.requests.append(request)
        if not self.is_configured:
            raise ProviderError(
                ProviderErrorKind.UNCONFIGURED,
                self.name,
                f"{self.name.upper()}_API_KEY not configured",
            )
        if self._delay_s:
            await asyncio.sleep(self._delay_s)
        reply = self._replies.pop(0) if len(self._replies) > 1 else self._replies[0]
        if isinstance(reply, Exception):
            raise reply
        return reply


def provider_error(name: str, kind: ProviderErrorKind, message: str = "boom") -> ProviderError:
    return ProviderError(kind, name, message)


def make_config(
    names: Sequence[str] = ("groq", "gemini"),
    preferred: Optional[str] = None,
    timeout_s: float = 5.0,
) -> OrchestratorConfig:
    budget = OperationBudget(timeout_s=timeout_s, max_tokens=100, temperature=0.7)
    return OrchestratorConfig(
        providers=[make_provider_config(name) for name in names],
        preferred_provider=preferred,
        operations={kind: budget for kind in OperationKind},
    )


def make_expense(
    amount: Union[str, int],
    category: str = "Food",
    days_offset: int = 0,
    description: Optional[str] = None,
    expense_id: Optional[str] = None,
) -> ExpenseRecord:
    return ExpenseRecord(
        id=expense_id or f"exp-{category}-{days_offset}-{amount}",
        amount=Decimal(str(amount)),
        category=category,
        description=description,
        date=BASE_DATE + timedelta(days=days_offset),
    )


VALID_INSIGHTS_JSON = """[
  {"id": "ai-1", "type": "warning", "title": "Food is high",
   "message": "Food takes almost half of your spending.", "confidence": 0.9},
  {"id": "ai-2", "type": "tip", "title": "Cook at home",
   "message": "Cooking twice a week could save about 2,000 rupees."}
]"""


@pytest.fixture
def ten_day_expenses() -> list[ExpenseRecord]:
    """Twelve records totalling Rs 12,500 over a 10-day span, Food 45%, four categories."""
    return [
        make_expense("1500", "Food", 0, "Weekly groceries"),
        make_expense("1200", "Transportation", 1, "Cab to airport"),
        make_expense("1200", "Food", 2, "Dinner with family"),
        make_expense("1000", "Transportation", 3, "Petrol"),
        make_expense("1125", "Food", 4, "Groceries"),
        make_expense("800", "Transportation", 5, "Metro card recharge"),
        make_expense("1000", "Food", 6, "Restaurant lunch"),
        make_expense("1200", "Shopping", 7, "Shoes"),
        make_expense("800", "Food", 8, "Swiggy order"),
        make_expense("800", "Shopping", 9, "T-shirts"),
        make_expense("1200", "Bills", 10, "Electricity bill"),
        make_expense("675", "Bills", 10, "Mobile recharge"),
    ]


@pytest.fixture
def small_expenses() -> list[ExpenseRecord]:
    return [
        make_expense("150", "Food", 0, "Coffee"),
        make_expense("250", "Transportation", 1, "Metro card"),
    ]

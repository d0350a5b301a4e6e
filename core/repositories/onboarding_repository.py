from abc import ABC, abstractmethod
from typing import Optional
from core.entities.onboarding import OnboardingAnswers, OnboardingRecord


class OnboardingRepository(ABC):
    @abstractmethod
    def get_by_user(self, user_id: int) -> Optional[OnboardingRecord]:...

    @abstractmethod
    def upsert(self, user_id: int, answers: OnboardingAnswers, completed: bool = True) -> OnboardingRecord:...

    @abstractmethod
    def count_completed(self) -> int:...

from bookflow.repository.base import BookingRepository
from bookflow.repository.memory import InMemoryRepository

__all__ = ["BookingRepository", "InMemoryRepository"]

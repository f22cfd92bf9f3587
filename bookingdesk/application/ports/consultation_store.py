from __future__ import annotations

from abc import ABC, abstractmethod

from bookingdesk.domain.entities.consultation import Consultation


class ConsultationStorePort(ABC):
    @abstractmethod
    def record(self, consultation: Consultation) -> None:
        raise NotImplementedError

    @abstractmethod
    def list_all(self) -> list[Consultation]:
        """Stored consultations in insertion order."""
        raise NotImplementedError

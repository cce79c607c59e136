from abc import ABC, abstractmethod

from price_alerts.models import EmailSendResult


class EmailChannel(ABC):
    @property
    @abstractmethod
    def configured(self) -> bool:
        """False when the channel has no credentials and can never send."""
        ...

    @abstractmethod
    async def send(
        self, to: str, subject: str, html: str, from_email: str | None = None
    ) -> EmailSendResult:
        """Send one HTML email. Must not raise for provider or network errors."""
        ...

from typing import Protocol


class SmsTransport(Protocol):
    def send(self, phone: str, code: str) -> None:
        """Deliver code to phone. Raises DeliveryError."""
        ...

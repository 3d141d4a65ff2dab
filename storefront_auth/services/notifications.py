"""Fire-and-forget delivery of account notifications."""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Protocol

from storefront_auth.services.email import EmailService

logger = logging.getLogger("storefront_auth")


class AccountNotifier(Protocol):
    """What the auth service needs from the notification system."""

    def send_password_reset_email(self, address: str, token: str) -> None: ...

    def send_welcome_email(self, address: str, first_name: str) -> None: ...


class Notifier:
    """Runs email sends on a background thread pool.

    Calls return immediately. A failed send is logged and never reaches the
    request that triggered it.
    """

    def __init__(self, email_service: EmailService, max_workers: int = 2) -> None:
        self.email_service = email_service
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="notify")

    def _submit(self, description: str, fn, *args) -> Future:
        future = self._executor.submit(fn, *args)
        future.add_done_callback(lambda f: self._log_outcome(description, f))
        return future

    @staticmethod
    def _log_outcome(description: str, future: Future) -> None:
        error = future.exception()
        if error is not None:
            logger.error("Failed to send %s: %s", description, error)

    def send_password_reset_email(self, address: str, token: str) -> None:
        self._submit(f"reset email to {address}", self.email_service.send_password_reset_email, address, token)

    def send_welcome_email(self, address: str, first_name: str) -> None:
        self._submit(f"welcome email to {address}", self.email_service.send_welcome_email, address, first_name)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

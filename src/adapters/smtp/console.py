"""
Console email sender adapter - Implements EmailSender protocol.

This module provides a console-based implementation of the domain's
email sender port, logging one-time codes for demo and test purposes.
"""

import logging

from src.domain.ports import OtpPurpose

logger = logging.getLogger(__name__)


class ConsoleEmailSender:
    """
    Implements EmailSender protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    For demo/development purposes - prints codes to stdout.
    """

    def send_code(self, email: str, code: str, purpose: OtpPurpose) -> None:
        """
        Log a one-time code to console (simulates email delivery).

        The code is logged at INFO level so it shows up in the service logs.

        Args:
            email: Recipient email address (normalized by domain layer)
            code: Numeric one-time code
            purpose: Flow the code was issued for
        """
        logger.info("[VERIFICATION] Email: %s Purpose: %s Code: %s", email, purpose.value, code)

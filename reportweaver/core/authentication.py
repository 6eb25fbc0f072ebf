"""
Portal login sequence.

Drives the fixed identifier -> SSO check -> credentials -> second factor
sequence on a browser session. The flow is linear: no retries, and the first
failing step aborts it with an AuthenticationError naming that step.
"""

import logging
from enum import Enum
from typing import Optional

from .domain import PortalCredentials
from .exceptions import AuthenticationError, ElementTimeout
from .ports import BrowserSessionPort, StatusNotificationPort
from .selectors import DEFAULT_SELECTORS, SSO_ENABLED_VALUE, LoginSelectors

logger = logging.getLogger(__name__)


class AuthState(Enum):
    NAVIGATE_TO_LOGIN = "navigate_to_login"
    ENTER_IDENTIFIER = "enter_identifier"
    VERIFY_SSO_ASSERTION = "verify_sso_assertion"
    SUBMIT_IDENTIFIER = "submit_identifier"
    ENTER_CREDENTIALS = "enter_credentials"
    SUBMIT_CREDENTIALS = "submit_credentials"
    CONFIRM_SECOND_FACTOR = "confirm_second_factor"
    DONE = "done"


class AuthenticationFlow:
    """Login state machine for the reporting portal"""

    def __init__(
        self,
        extended_timeout: float = 60.0,
        selectors: LoginSelectors = DEFAULT_SELECTORS.login,
        status: Optional[StatusNotificationPort] = None
    ):
        """
        Args:
            extended_timeout: Seconds each step may wait for its element
            selectors: Login page selectors
            status: Optional status channel for progress messages
        """
        self.extended_timeout = extended_timeout
        self.selectors = selectors
        self.status = status

    async def authenticate(
        self,
        session: BrowserSessionPort,
        credentials: PortalCredentials,
        url: Optional[str] = None
    ) -> AuthState:
        """
        Run the login sequence.

        Args:
            session: Session to drive
            credentials: Portal credentials
            url: Login page URL; when None the current page is used

        Returns:
            AuthState.DONE

        Raises:
            AuthenticationError: On the first failing step
        """
        state = AuthState.NAVIGATE_TO_LOGIN
        self._notify("Starting login process...")

        try:
            if url and url.strip():
                self._notify(f"Navigating to login page: {url}")
                await session.open(url)

            state = AuthState.ENTER_IDENTIFIER
            self._notify("Waiting for username field...")
            identifier = await session.wait_visible(self.selectors.identifier_input, self.extended_timeout)
            await session.send_keys(identifier, credentials.username)

            state = AuthState.VERIFY_SSO_ASSERTION
            self._notify("Checking SSO login mode...")
            await session.wait_visible(self.selectors.sso_mode_marker, self.extended_timeout)
            flag = await session.find_one(self.selectors.sso_enabled_flag)
            flag_value = await session.attribute(flag, "value") if flag is not None else None
            if flag_value != SSO_ENABLED_VALUE:
                raise AuthenticationError(
                    f"SSO flag is {flag_value!r}, expected {SSO_ENABLED_VALUE!r}",
                    username=credentials.username,
                    state=state.value
                )

            state = AuthState.SUBMIT_IDENTIFIER
            self._notify("Clicking login button...")
            submit = await session.wait_visible(self.selectors.identifier_submit, self.extended_timeout)
            await session.click(submit)

            state = AuthState.ENTER_CREDENTIALS
            self._notify("Waiting for credential fields...")
            username_input = await session.wait_visible(self.selectors.username_input, self.extended_timeout)
            password_input = await session.wait_visible(self.selectors.password_input, self.extended_timeout)
            await session.send_keys(username_input, credentials.username)
            await session.send_keys(password_input, credentials.password)

            state = AuthState.SUBMIT_CREDENTIALS
            self._notify("Submitting login form...")
            credentials_submit = await session.wait_visible(self.selectors.credentials_submit, self.extended_timeout)
            await session.click(credentials_submit)

            state = AuthState.CONFIRM_SECOND_FACTOR
            self._notify("Waiting for second-factor confirmation...")
            trust = await session.wait_visible(self.selectors.trust_browser_button, self.extended_timeout)
            await session.click(trust)

        except AuthenticationError as e:
            self._notify(f"Login failed: {e}")
            raise
        except ElementTimeout as e:
            self._notify(f"Login failed: {e}")
            raise AuthenticationError(
                f"Login step '{state.value}' timed out: {e}",
                username=credentials.username,
                state=state.value,
                selector=e.selector
            ) from e
        except Exception as e:
            self._notify(f"Login failed: {e}")
            raise AuthenticationError(
                f"Login step '{state.value}' failed: {e}",
                username=credentials.username,
                state=state.value
            ) from e

        self._notify("Login successful!")
        return AuthState.DONE

    def _notify(self, message: str) -> None:
        logger.info(message)
        if self.status:
            self.status.notify(message)

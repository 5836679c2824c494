import re
import secrets
import uuid

import httpx

from shared.clients.identity.IdentityClientInterface import IdentityClientInterface
from shared.clients.identity.models.ProviderUser import ProviderUser
from shared.errors import (
    IdentityError,
    IDENTITY_DISABLED,
    IDENTITY_EMAIL_IN_USE,
    IDENTITY_INVALID_CREDENTIALS,
    IDENTITY_INVALID_EMAIL,
    IDENTITY_NOT_FOUND,
    IDENTITY_TOO_MANY_ATTEMPTS,
    IDENTITY_WEAK_PASSWORD,
)
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_MIN_PASSWORD_LENGTH = 6


class IdentityClientMemory(IdentityClientInterface):
    """
    In-process identity provider with the same failure codes as the hosted one.
    Accounts are lost when the process ends.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._max_failed_attempts = self.get_config_val("MAX_FAILED_ATTEMPTS", default=5, val_type="number")
        self._signup_enabled = self.get_config_val("SIGNUP_ENABLED", default=True, val_type="bool")
        # email (lowercase) -> account
        self._accounts: dict[str, dict] = {}
        self._failed_attempts: dict[str, int] = {}

    ##########################################
    ################ GETTER ##################
    ##########################################

    def _get_engine_name(self) -> str:
        return "Memory"

    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="MAX_FAILED_ATTEMPTS", val_type="number", default=5),
            EnvConfig(env_key="SIGNUP_ENABLED", val_type="bool", default=True),
        ]

    def _get_base_url(self) -> str:
        return "memory://"

    def _get_endpoint_healthcheck(self) -> str:
        return ""

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_healthcheck(self) -> httpx.Response:
        return httpx.Response(200)

    async def _do_sign_in(self, email: str, password: str) -> ProviderUser:
        key = self._check_email(email)
        account = self._accounts.get(key)
        if account is None:
            raise IdentityError(IDENTITY_NOT_FOUND)
        if account["disabled"]:
            raise IdentityError(IDENTITY_DISABLED)
        if self._failed_attempts.get(key, 0) >= self._max_failed_attempts:
            raise IdentityError(IDENTITY_TOO_MANY_ATTEMPTS)
        if not secrets.compare_digest(account["password"], password):
            self._failed_attempts[key] = self._failed_attempts.get(key, 0) + 1
            raise IdentityError(IDENTITY_INVALID_CREDENTIALS)

        self._failed_attempts.pop(key, None)
        return self._issue_user(account)

    async def _do_sign_up(self, email: str, password: str) -> ProviderUser:
        if not self._signup_enabled:
            raise IdentityError(IDENTITY_DISABLED)
        key = self._check_email(email)
        if key in self._accounts:
            raise IdentityError(IDENTITY_EMAIL_IN_USE)
        if len(password) < _MIN_PASSWORD_LENGTH:
            raise IdentityError(IDENTITY_WEAK_PASSWORD, detail=f"Password should be at least {_MIN_PASSWORD_LENGTH} characters")

        account = {
            "uid": uuid.uuid4().hex[:28],
            "email": email.strip(),
            "password": password,
            "disabled": False,
        }
        self._accounts[key] = account
        return self._issue_user(account)

    def disable_account(self, email: str) -> None:
        """Administrative switch; disabled accounts can no longer sign in."""
        self._accounts[email.strip().lower()]["disabled"] = True

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _check_email(self, email: str) -> str:
        if not _EMAIL_PATTERN.match(email.strip()):
            raise IdentityError(IDENTITY_INVALID_EMAIL)
        return email.strip().lower()

    def _issue_user(self, account: dict) -> ProviderUser:
        return ProviderUser(
            uid=account["uid"],
            email=account["email"],
            id_token=secrets.token_urlsafe(24),
            refresh_token=secrets.token_urlsafe(24),
        )

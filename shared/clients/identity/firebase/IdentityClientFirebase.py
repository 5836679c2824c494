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
    IDENTITY_UNKNOWN,
    IDENTITY_WEAK_PASSWORD,
)
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig

# Identity Toolkit error messages -> normalized codes
_ERROR_CODES: dict[str, str] = {
    "EMAIL_NOT_FOUND": IDENTITY_NOT_FOUND,
    "INVALID_PASSWORD": IDENTITY_INVALID_CREDENTIALS,
    "INVALID_LOGIN_CREDENTIALS": IDENTITY_INVALID_CREDENTIALS,
    "TOO_MANY_ATTEMPTS_TRY_LATER": IDENTITY_TOO_MANY_ATTEMPTS,
    "INVALID_EMAIL": IDENTITY_INVALID_EMAIL,
    "MISSING_EMAIL": IDENTITY_INVALID_EMAIL,
    "EMAIL_EXISTS": IDENTITY_EMAIL_IN_USE,
    "WEAK_PASSWORD": IDENTITY_WEAK_PASSWORD,
    "USER_DISABLED": IDENTITY_DISABLED,
    "OPERATION_NOT_ALLOWED": IDENTITY_DISABLED,
}


class IdentityClientFirebase(IdentityClientInterface):
    """
    Firebase Authentication through the Identity Toolkit REST API (email/password).
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default="https://identitytoolkit.googleapis.com/v1", val_type="string")
        self._api_key = self.get_config_val("API_KEY", default=None, val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Firebase"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default="https://identitytoolkit.googleapis.com/v1"),
            EnvConfig(env_key="API_KEY", val_type="string", default=None),
        ]

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/projects"

    def _get_endpoint_sign_in(self) -> str:
        return "/accounts:signInWithPassword"

    def _get_endpoint_sign_up(self) -> str:
        return "/accounts:signUp"

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def _do_sign_in(self, email: str, password: str) -> ProviderUser:
        return await self._do_credential_request(self._get_endpoint_sign_in(), email, password)

    async def _do_sign_up(self, email: str, password: str) -> ProviderUser:
        return await self._do_credential_request(self._get_endpoint_sign_up(), email, password)

    async def _do_credential_request(self, endpoint: str, email: str, password: str) -> ProviderUser:
        resp = await self.do_request(
            method="POST",
            endpoint=endpoint,
            params={"key": self._api_key},
            json={"email": email, "password": password, "returnSecureToken": True},
        )
        if resp.status_code >= 400:
            raise self._parse_error(resp)
        return self._parse_user(resp.json())

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def _parse_user(self, response: dict) -> ProviderUser:
        return ProviderUser(
            uid=response.get("localId"),
            email=response.get("email"),
            id_token=response.get("idToken"),
            refresh_token=response.get("refreshToken"),
        )

    def _parse_error(self, resp: httpx.Response) -> IdentityError:
        """
        Turns an error response into an IdentityError. Messages look like
        "EMAIL_EXISTS" or "WEAK_PASSWORD : Password should be at least 6 characters".
        """
        try:
            message = resp.json().get("error", {}).get("message", "")
        except ValueError:
            message = ""
        raw_code, _, detail = message.partition(" : ")
        code = _ERROR_CODES.get(raw_code.strip(), IDENTITY_UNKNOWN)
        self.logging.warning("Identity request failed with status %d: %s", resp.status_code, message or resp.text)
        return IdentityError(code, detail=detail or message or None)

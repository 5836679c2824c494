from abc import ABC, abstractmethod
from typing import Any

import httpx
from httpx._types import QueryParamTypes

from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class ClientInterface(ABC):
    """
    Base of every external collaborator the archive talks to (backend gateway,
    identity provider). An engine is selected by configuration; its settings
    live under ``<CLIENT_TYPE>_<ENGINE>_<KEY>`` and are validated on construction.

    REST engines send their calls through ``do_request``; in-process engines
    override the request methods and never touch the HTTP client.
    """

    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config
        self.timeout = helper_config.get_number_val(f"{self.get_client_type().upper()}_TIMEOUT", default=30.0)
        self._client: httpx.AsyncClient | None = None
        self.validate_full_configuration()

    ##########################################
    ############### CHECKER ##################
    ##########################################

    def validate_full_configuration(self) -> None:
        """
        Reads every config key the engine declares, so a missing or malformed value fails at startup.

        Raises:
            ValueError: If a required key is unset or a value does not parse.
        """
        for config in self._get_required_config():
            self.get_config_val(raw_key=config.env_key, default=config.default, val_type=config.val_type)

    def is_booted(self) -> bool:
        return self._client is not None

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def get_client_type(self) -> str:
        return self._get_client_type().lower()

    @abstractmethod
    def _get_client_type(self) -> str:
        """
        Returns the client type used as config prefix, e.g. "backend" or "identity".
        """
        pass

    def get_engine_name(self) -> str:
        return self._get_engine_name().lower()

    @abstractmethod
    def _get_engine_name(self) -> str:
        """
        Returns the engine name as used in the class name, e.g. "Firestore".
        """
        pass

    def describe(self) -> str:
        """
        Returns "<type>/<engine>" for log messages, e.g. "backend/firestore".
        """
        return f"{self.get_client_type()}/{self.get_engine_name()}"

    ################ CONFIG ##################
    @abstractmethod
    def _get_required_config(self) -> list[EnvConfig]:
        """
        Returns the config keys of the engine. Keys with a default are optional.
        """
        pass

    def _get_config_key_name(self, raw_key: str) -> str:
        """
        Returns:
            str: The prefixed key, e.g. "PROJECT_ID" -> "BACKEND_FIRESTORE_PROJECT_ID".
        """
        return f"{self.get_client_type().upper()}_{self.get_engine_name().upper()}_{raw_key.upper()}"

    def get_config_val(self, raw_key: str, default: Any = None, val_type: str = "string") -> Any:
        """
        Reads an engine config value.

        Args:
            raw_key (str): The unprefixed key, e.g. "API_KEY".
            default (Any): Fallback if unset. None makes the key required.
            val_type (str): One of "string", "number", "bool", "list".

        Raises:
            ValueError: If the key is required but unset, the value does not parse, or val_type is unknown.
        """
        readers = {
            "string": self._helper_config.get_string_val,
            "number": self._helper_config.get_number_val,
            "bool": self._helper_config.get_bool_val,
            "list": self._helper_config.get_list_val,
        }
        reader = readers.get(val_type)
        if reader is None:
            raise ValueError(f"Unsupported config value type '{val_type}' for key '{raw_key}' of client '{self.describe()}'.")
        return reader(self._get_config_key_name(raw_key), default=default)

    ################ AUTH ##################
    @abstractmethod
    def _get_auth_header(self) -> dict:
        """
        Returns the headers authenticating a request, empty if none apply.
        """
        pass

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_base_url(self) -> str:
        """
        Returns the base URL all endpoints are appended to, e.g. "https://firestore.googleapis.com/v1".
        """
        pass

    @abstractmethod
    def _get_endpoint_healthcheck(self) -> str:
        pass

    def _build_url(self, endpoint: str) -> str:
        endpoint = endpoint.strip()
        path = "/" + endpoint.lstrip("/") if endpoint else ""
        return f"{self._get_base_url().rstrip('/')}{path}"

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_healthcheck(self) -> httpx.Response:
        """Send a GET to the healthcheck endpoint and return the response as is."""
        return await self.do_request(method="GET", endpoint=self._get_endpoint_healthcheck())

    ##########################################
    ############ CORE REQUESTS ###############
    ##########################################

    async def boot(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        """Create the HTTP client.

        Args:
            transport (httpx.AsyncBaseTransport | None): Optional transport, e.g. an httpx.MockTransport in tests.
        """
        self._client = httpx.AsyncClient(timeout=self.timeout, transport=transport)

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def do_request(
        self,
        method: str = "GET",
        json: dict | None = None,
        params: QueryParamTypes | None = None,
        endpoint: str = "",
        additional_headers: dict | None = None,
        raise_on_error: bool = False,
    ) -> httpx.Response:
        """Send a request to ``<base url>/<endpoint>`` with the auth header of the engine.

        Args:
            method: HTTP method.
            json: JSON body.
            params: URL query parameters.
            endpoint: Path below the base URL, leading slash optional.
            additional_headers: Headers overriding the defaults.
            raise_on_error: Log and raise on status >= 400 instead of returning the response.

        Raises:
            RuntimeError: If boot() was not called.
            httpx.HTTPStatusError: If raise_on_error is set and the call failed.
        """
        if self._client is None:
            raise RuntimeError(f"Client '{self.describe()}' is not booted. Call boot() before making requests.")

        headers = {**self._get_auth_header(), **(additional_headers or {})}
        url = self._build_url(endpoint)
        kwargs: dict = {"headers": headers, "timeout": self.timeout, "params": params}
        if json is not None:
            kwargs["json"] = json

        response = await self._client.request(method, url, **kwargs)

        if raise_on_error and response.status_code >= 400:
            self.logging.error("%s %s failed with status %d: %s", method, url, response.status_code, response.text)
            response.raise_for_status()

        return response

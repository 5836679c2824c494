from shared.helper.HelperConfig import HelperConfig
from shared.clients.identity.IdentityClientInterface import IdentityClientInterface

class IdentityClientManager:
    """
    Manager class to instantiate the identity provider client selected by configuration.
    """

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.client = self._initialize_client()

    def _get_engine_from_env(self) -> str:
        """
        Reads the identity engine from ENV configuration (IDENTITY_ENGINE, default "memory").

        Returns:
            str: The capitalized engine name, e.g. "Firebase".
        """
        engine = self.helper_config.get_string_val("IDENTITY_ENGINE", default="memory")
        return engine.strip().lower().capitalize()

    def _initialize_client(self) -> IdentityClientInterface:
        """
        Initializes the identity client for the configured engine.

        Returns:
            IdentityClientInterface: The identity client instance.

        Raises:
            ValueError: If the configured engine is not supported.
        """
        engine = self._get_engine_from_env()
        className = f"IdentityClient{engine}"
        try:
            module = __import__(
                f"shared.clients.identity.{engine.lower()}.{className}",
                fromlist=[className],
            )
            client_class = getattr(module, className)
        except (ImportError, AttributeError) as e:
            raise ValueError(f"Unsupported identity engine specified: '{engine}'. Error: {e}")

        client = client_class(helper_config=self.helper_config)
        self.logging.debug("Instantiated identity client for engine: %s", engine)
        return client

    def get_client(self) -> IdentityClientInterface:
        """
        Returns the instantiated identity client.
        """
        return self.client

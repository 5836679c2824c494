from shared.helper.HelperConfig import HelperConfig
from shared.clients.backend.BackendClientInterface import BackendClientInterface

class BackendClientManager:
    """
    Manager class to instantiate the backend gateway client selected by configuration.
    """

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.client = self._initialize_client()

    def _get_engine_from_env(self) -> str:
        """
        Reads the backend engine from ENV configuration (BACKEND_ENGINE, default "memory").

        Returns:
            str: The capitalized engine name, e.g. "Firestore".
        """
        engine = self.helper_config.get_string_val("BACKEND_ENGINE", default="memory")
        return engine.strip().lower().capitalize()

    def _initialize_client(self) -> BackendClientInterface:
        """
        Initializes the backend client for the configured engine.

        Returns:
            BackendClientInterface: The backend client instance.

        Raises:
            ValueError: If the configured engine is not supported.
        """
        engine = self._get_engine_from_env()
        className = f"BackendClient{engine}"
        try:
            module = __import__(
                f"shared.clients.backend.{engine.lower()}.{className}",
                fromlist=[className],
            )
            client_class = getattr(module, className)
        except (ImportError, AttributeError) as e:
            raise ValueError(f"Unsupported backend engine specified: '{engine}'. Error: {e}")

        client = client_class(helper_config=self.helper_config)
        self.logging.debug("Instantiated backend client for engine: %s", engine)
        return client

    def get_client(self) -> BackendClientInterface:
        """
        Returns the instantiated backend client.
        """
        return self.client

import secrets

from fastapi import Header, HTTPException, Request


async def verify_api_key(request: Request, x_api_key: str | None = Header(default=None, alias="X-API-Key")) -> None:
    """Guard every archive route with the shared APP_API_KEY.

    A missing header is treated like a wrong key.

    Raises:
        HTTPException: 401 if the key is missing or does not match.
    """
    expected_key = request.app.state.helper_config.get_string_val("APP_API_KEY")
    if not x_api_key or not secrets.compare_digest(x_api_key.encode(), expected_key.encode()):
        request.app.state.logging.warning("Rejected request to %s: invalid API key", request.url.path)
        raise HTTPException(status_code=401, detail="Invalid or missing API key")

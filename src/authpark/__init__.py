"""authpark -- park HTTP requests that fail for lack of credentials, replay them after login.

Requests failing with 400 or 401 are held on a completion handle instead of
failing, and an auth event is broadcast. When the application reports a
successful login, every held request is replayed (optionally with a new
credential) and its original caller receives the replayed response. When
the login is cancelled, held requests are rejected or abandoned.

Typical usage::

    from authpark import AsyncClient, ClientSettings
    from authpark.events import EVENT_LOGIN_REQUIRED
    from authpark.filters import bearer_updater

    async with AsyncClient(ClientSettings(base_url="https://api.example.com")) as client:
        client.service.events.subscribe(
            EVENT_LOGIN_REQUIRED,
            lambda topic, note: client.service.login_confirmed(
                config_updater=bearer_updater(fetch_token())
            ),
        )
        response = await client.get("/me")

Modules:
    completion: single-resolution handles awaited by parked callers.
    buffer: the ordered buffer of parked requests.
    classifier: pluggable scope predicates and request preprocessor.
    interceptor: the request / response-error pipeline.
    service: the host-facing registration and login surface.
    events: event names and the publish/subscribe channel.
    client: httpx-based async client wired to the pipeline.
    filters: ready-made filters, preprocessors and config updaters.
    config: settings resolution (file, environment, flags).
    app: the ``authpark`` command line.
"""

__version__ = "0.1.0"

from authpark.client import AsyncClient  # noqa: E402
from authpark.models import ClientSettings, RequestConfig  # noqa: E402
from authpark.service import AuthService  # noqa: E402

__all__ = ["AsyncClient", "AuthService", "ClientSettings", "RequestConfig", "__version__"]

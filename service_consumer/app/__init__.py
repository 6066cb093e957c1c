"""
KeyAuth consumer service package.

This package exposes the FastAPI application that delegates authentication
to a KeyAuth provider:

- app.main: Service entrypoint that wires routes and lifecycle.
- app.consumer: Facade building the consumer from configuration.
- app.provider: Provider address resolution, transport and body decoding.
- app.validation: Token validation against the provider.
- app.session: Token-for-identity exchange and session exposure.
- app.login: Login flow controller and HTTP routes.

Design notes:
- Module import must not perform IO. Assets are loaded in the lifespan and
  provider calls only happen inside request handlers.
- The session store belongs to the host application; only the ``keyauth``
  field is read and written.
"""

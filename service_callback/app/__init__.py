"""
Callback Service package for the Cosigner callback handler.

This package receives signed transaction-signing requests from the
Cosigner, verifies them, applies an approval decision and answers with a
signed verdict:

- app.credentials: Resolve-once key store (SSM, environment, files).
- app.tokens: RS256 verification of requests and signing of responses.
- app.decision: Pluggable approval policies.
- app.orchestrator: verify -> decide -> sign, mapped onto HTTP outcomes.
- app.lambda_handler: AWS Lambda / API Gateway entrypoint.
- app.main: FastAPI application for running as a regular HTTP server.

Design notes:
- Module import must not perform network calls; keys are fetched lazily on
  the first request that needs them.
- Use the shared/ utilities for config, logging, metrics and errors.
- Apart from the cached keys the service is stateless per request.
"""

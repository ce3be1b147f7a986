"""
Gateway — Middleware Package
=============================

One module per pipeline stage. Stages raise exceptions and never format
error responses; error_handler.GlobalErrorHandlerMiddleware is the single
point where failures become responses.

Execution order (see gateway.main.build_pipeline):
    CORS → security_headers → request_id → access_log → error_handler
    → body_parser → sanitize → rate_limit → GZip → instrumentation
"""

"""
WebFinger Application Layer

This package implements the web application layer for the WebFinger service, handling HTTP
requests and responses using the aiohttp framework.

Key Components:
- cli.py: Entry point for running the application
- server.py: Web server configuration and middleware setup
- config.py: Configuration management using Pydantic settings
- handlers/: Request handlers for different endpoints
- tasks.py: Background tasks for configuration reload and health monitoring
- cors.py: CORS headers for /.well-known/ resources
- metrics.py: Metrics client abstraction

The application uses several middleware layers:
- CORS middleware for public discovery documents
- Statsd middleware for metrics collection
- Sentry middleware for error reporting

It provides the following endpoints:
- WebFinger discovery (/.well-known/webfinger)
- Internal endpoints (/internal/*)
"""

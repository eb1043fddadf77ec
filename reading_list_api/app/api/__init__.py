"""
API package.

``router`` aggregates the resource routers defined in ``endpoints``;
``deps`` provides the FastAPI dependencies that hand each request its
services, built around the storage backend held in ``app.state``.
"""

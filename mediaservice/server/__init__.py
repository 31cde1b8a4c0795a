from mediaservice.server.app import create_app, validate_query_params
from mediaservice.server.web import HTTPServer

__all__ = ["HTTPServer", "create_app", "validate_query_params"]

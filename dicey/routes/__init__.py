from dicey.routes.auth import register_auth_routes
from dicey.routes.errors import register_error_handlers
from dicey.routes.rooms import register_room_routes


def register_routes(app):
    register_error_handlers(app)
    register_auth_routes(app)
    register_room_routes(app)

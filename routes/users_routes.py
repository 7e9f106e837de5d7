"""
Users API — REST endpoints for the user resource.

Endpoints:
    GET    /users                         — list users (default page window)
    GET    /users/<page>/<page_size>      — list users in a page window
    POST   /users                         — create user, returns new id
    GET    /users/<id>                    — get user
    PUT    /users/<id>                    — overwrite name and email
    DELETE /users/<id>                    — delete user

Routes hold no state; every call goes through the injected UserStore.
"""
import structlog
from flask import jsonify, request

from core.users import (
    MAX_INT64,
    UsersListFilter,
    UserStoreError,
    ValidationError,
    NotFound,
    ConstraintViolation,
)

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Request parsing helpers
# ---------------------------------------------------------------------------

def _parse_uint(raw, name):
    """Parse a path segment as a non-negative 64-bit integer."""
    if raw is None or not raw.isascii() or not raw.isdigit():
        raise ValidationError(f'invalid {name}: {raw!r}')
    value = int(raw)
    if value > MAX_INT64:
        raise ValidationError(f'{name} out of range: {raw}')
    return value


def _parse_user_body():
    """Decode the JSON body into a (name, email) pair."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('request body must be a JSON object')

    name = data.get('name')
    email = data.get('email')
    if not isinstance(name, str):
        raise ValidationError('name is required')
    if not isinstance(email, str):
        raise ValidationError('email is required')
    return name, email


def _store_error_response(log, err):
    """Map a store failure onto an HTTP response."""
    if isinstance(err, NotFound):
        log.info('user not found', user_id=err.user_id)
        return jsonify({'error': 'User not found'}), 404
    if isinstance(err, ConstraintViolation):
        log.info('constraint violated', error=str(err))
        return jsonify({'error': 'User with this email already exists'}), 409
    log.error('store call failed', error=str(err))
    return jsonify({'error': 'An internal error occurred'}), 500


# ---------------------------------------------------------------------------
# Route registration
# ---------------------------------------------------------------------------

def register_users_routes(app, store):
    """Register user CRUD routes backed by ``store``."""
    app.extensions['user_store'] = store

    def list_users(users_filter):
        log = logger.bind(op='handlers.users.get_users_list')
        try:
            users = store.get_users_list(users_filter)
        except UserStoreError as e:
            return _store_error_response(log, e)
        log.debug('users listed', page=users_filter.page, page_size=users_filter.page_size,
                  count=len(users))
        return jsonify([u.to_dict() for u in users])

    # ------------------------------------------------------------------
    # GET /users  — list with the default filter
    # ------------------------------------------------------------------
    @app.route('/users', methods=['GET'])
    def get_users_default_page():
        return list_users(UsersListFilter())

    # ------------------------------------------------------------------
    # GET /users/<page>/<page_size>  — list a page window
    # ------------------------------------------------------------------
    @app.route('/users/<page>/<page_size>', methods=['GET'])
    def get_users_list(page, page_size):
        log = logger.bind(op='handlers.users.get_users_list')
        try:
            users_filter = UsersListFilter(
                page=_parse_uint(page, 'page'),
                page_size=_parse_uint(page_size, 'page_size'),
            )
        except ValidationError as e:
            log.info('invalid pagination parameters', error=e.message)
            return jsonify({'error': e.message}), 400
        return list_users(users_filter)

    # ------------------------------------------------------------------
    # POST /users  — create a user
    # ------------------------------------------------------------------
    @app.route('/users', methods=['POST'])
    def add_user():
        log = logger.bind(op='handlers.users.add_user')
        try:
            name, email = _parse_user_body()
        except ValidationError as e:
            log.info('error decoding body', error=e.message)
            return jsonify({'error': e.message}), 400

        try:
            user_id = store.add_user(name, email)
        except UserStoreError as e:
            return _store_error_response(log, e)

        log.info('user added', user_id=user_id)
        return jsonify({'id': user_id})

    # ------------------------------------------------------------------
    # GET /users/<id>  — fetch a user
    # ------------------------------------------------------------------
    @app.route('/users/<user_id>', methods=['GET'])
    def get_user(user_id):
        log = logger.bind(op='handlers.users.get_user')
        try:
            user_id = _parse_uint(user_id, 'user id')
        except ValidationError as e:
            log.info('error getting user id', error=e.message)
            return jsonify({'error': e.message}), 400

        try:
            user = store.get_user(user_id)
        except UserStoreError as e:
            return _store_error_response(log, e)

        return jsonify(user.to_dict())

    # ------------------------------------------------------------------
    # PUT /users/<id>  — overwrite name and email
    # ------------------------------------------------------------------
    @app.route('/users/<user_id>', methods=['PUT'])
    def update_user(user_id):
        log = logger.bind(op='handlers.users.update_user')
        try:
            user_id = _parse_uint(user_id, 'user id')
            name, email = _parse_user_body()
        except ValidationError as e:
            log.info('invalid update request', error=e.message)
            return jsonify({'error': e.message}), 400

        try:
            store.update_user(user_id, name, email)
        except UserStoreError as e:
            return _store_error_response(log, e)

        log.info('user updated', user_id=user_id)
        return jsonify({'success': True})

    # ------------------------------------------------------------------
    # DELETE /users/<id>  — remove a user
    # ------------------------------------------------------------------
    @app.route('/users/<user_id>', methods=['DELETE'])
    def delete_user(user_id):
        log = logger.bind(op='handlers.users.delete_user')
        try:
            user_id = _parse_uint(user_id, 'user id')
        except ValidationError as e:
            log.info('error getting user id', error=e.message)
            return jsonify({'error': e.message}), 400

        try:
            store.delete_user(user_id)
        except UserStoreError as e:
            return _store_error_response(log, e)

        log.info('user deleted', user_id=user_id)
        return jsonify({'success': True})

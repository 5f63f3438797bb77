"""
Authentication API
JWT-based login for the back office, plus user account management
"""

from flask import Blueprint, jsonify
from flask_jwt_extended import (
    jwt_required, create_access_token,
    create_refresh_token, get_jwt_identity, get_jwt
)
import logging

from models import UserRole
from serializers import serialize_user
from services import UserService
from utils.errors import ServiceError
from utils.request_helpers import error_response, get_json_body, query_arg, enum_parser

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')
user_bp = Blueprint('users', __name__, url_prefix='/api/users')

user_service = UserService()

# Revoked token ids (jti) for logout
revoked_tokens = set()

def _token_claims(user):
    return {'role': user.role.name, 'email': user.email}

@auth_bp.route('/login', methods=['POST'])
def login():
    """Exchange email and password for an access and refresh token"""
    try:
        data = get_json_body()
        user = user_service.authenticate(data.get('email'), data.get('password'))

        access_token = create_access_token(identity=str(user.id), additional_claims=_token_claims(user))
        refresh_token = create_refresh_token(identity=str(user.id), additional_claims={'role': user.role.name})

        return jsonify({
            'accessToken': access_token,
            'refreshToken': refresh_token,
            'user': serialize_user(user)
        })
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error in login: {str(e)}")
        return error_response('Failed to log in', 500)

@auth_bp.route('/refresh', methods=['POST'])
@jwt_required(refresh=True)
def refresh():
    """Issue a new access token from a refresh token"""
    try:
        user = user_service.get_user(int(get_jwt_identity()))
        if not user.is_active:
            return error_response('User account is not active', 401)

        access_token = create_access_token(identity=str(user.id), additional_claims=_token_claims(user))
        logger.info(f"Token refreshed for user {user.email}")
        return jsonify({'accessToken': access_token})
    except ServiceError as e:
        return error_response(e.message, 401 if e.status_code == 404 else e.status_code)
    except Exception as e:
        logger.error(f"Error in refresh: {str(e)}")
        return error_response('Failed to refresh token', 500)

@auth_bp.route('/logout', methods=['POST'])
@jwt_required(verify_type=False)
def logout():
    """Revoke the presented token"""
    try:
        revoked_tokens.add(get_jwt()['jti'])
        logger.info(f"User {get_jwt_identity()} logged out")
        return jsonify({'message': 'Successfully logged out'})
    except Exception as e:
        logger.error(f"Error in logout: {str(e)}")
        return error_response('Failed to log out', 500)

@auth_bp.route('/me', methods=['GET'])
@jwt_required()
def me():
    try:
        return jsonify(serialize_user(user_service.get_user(int(get_jwt_identity()))))
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error fetching current user: {str(e)}")
        return error_response('Failed to fetch current user', 500)

def check_if_token_revoked(jwt_header, jwt_payload):
    """Check if JWT token has been revoked by logout"""
    return jwt_payload['jti'] in revoked_tokens

# Users

@user_bp.route('', methods=['GET'])
def list_users():
    try:
        users = user_service.list_users(role=query_arg('role', enum_parser(UserRole)))
        return jsonify([serialize_user(user) for user in users])
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error fetching users: {str(e)}")
        return error_response('Failed to fetch users', 500)

@user_bp.route('', methods=['POST'])
def create_user():
    try:
        user = user_service.create_user(get_json_body())
        return jsonify(serialize_user(user)), 201
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error creating user: {str(e)}")
        return error_response('Failed to create user', 500)

@user_bp.route('/<int:user_id>', methods=['GET'])
def get_user(user_id):
    try:
        return jsonify(serialize_user(user_service.get_user(user_id)))
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error fetching user {user_id}: {str(e)}")
        return error_response('Failed to fetch user', 500)

@user_bp.route('/<int:user_id>', methods=['PUT'])
def update_user(user_id):
    try:
        user = user_service.update_user(user_id, get_json_body())
        return jsonify(serialize_user(user))
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error updating user {user_id}: {str(e)}")
        return error_response('Failed to update user', 500)

@user_bp.route('/<int:user_id>', methods=['DELETE'])
def delete_user(user_id):
    try:
        user_service.delete_user(user_id)
        return jsonify({'message': 'User deleted successfully'})
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error deleting user {user_id}: {str(e)}")
        return error_response('Failed to delete user', 500)

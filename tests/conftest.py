"""
Test configuration and fixtures for the drayage back office
"""

import pytest
import os

# Set test environment before importing app
os.environ.update({
    'FLASK_ENV': 'testing',
    'TESTING': 'true',
    'SESSION_SECRET': 'test_secret_key_for_testing_only_0123456789',
    'JWT_SECRET_KEY': 'test_jwt_secret_for_testing_only_0123456789',
    'DATABASE_URL': 'sqlite:///:memory:',
    'REQUIRE_API_AUTH': 'false',
    'DEMO_SEED': 'false',
})

from app import create_app, db
from flask_jwt_extended import create_access_token

from tests.factories import AdminUserFactory


@pytest.fixture(scope='function')
def app():
    """Create application for testing"""
    app = create_app()
    app.config.update({
        'TESTING': True,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client"""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create database session for testing"""
    yield db.session
    db.session.rollback()


@pytest.fixture
def admin_user(db_session):
    """Create admin user"""
    return AdminUserFactory(first_name='Ada', last_name='Admin')


@pytest.fixture
def auth_headers(app, admin_user):
    """Authorization header carrying an access token for the admin user"""
    token = create_access_token(identity=str(admin_user.id),
                                additional_claims={'role': admin_user.role.name, 'email': admin_user.email})
    return {'Authorization': f'Bearer {token}'}

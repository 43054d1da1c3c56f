import os
from decouple import config


def _default_database_path() -> str:
    return os.path.join('data', 'pill_tracker.db')


class Config:
    """Base configuration class"""

    # Store Configuration
    STORE_BACKEND = config('STORE_BACKEND', default='sqlalchemy')
    DATABASE_PATH = config('DATABASE_PATH', default=_default_database_path())
    DATABASE_URL = config('DATABASE_URL', default=f'sqlite:///{DATABASE_PATH}')
    DATABASE_ECHO = config('DATABASE_ECHO', default=False, cast=bool)

    # Inventory Configuration
    PACK_TRACKING_ENABLED = config('PACK_TRACKING_ENABLED', default=False, cast=bool)
    DEFAULT_PACK_SIZE = config('DEFAULT_PACK_SIZE', default=30, cast=int)
    DEFAULT_PILL_COLOR = config('DEFAULT_PILL_COLOR', default='#2196F3')

    # Logging Configuration
    LOG_LEVEL = config('LOG_LEVEL', default='INFO')
    LOG_FORMAT = config('LOG_FORMAT', default='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    TESTING = False


class DevelopmentConfig(Config):
    """Development configuration"""
    LOG_LEVEL = config('LOG_LEVEL', default='DEBUG')


class ProductionConfig(Config):
    """Production configuration"""
    DATABASE_ECHO = False


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    STORE_BACKEND = 'memory'
    DATABASE_URL = 'sqlite:///:memory:'
    LOG_LEVEL = 'WARNING'


# Configuration mapping
config_map = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}

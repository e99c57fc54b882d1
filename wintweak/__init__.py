from wintweak.core.constants import APP_VERSION

__version__ = APP_VERSION

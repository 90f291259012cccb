from django.apps import AppConfig
import logging

logger = logging.getLogger(__name__)


class ProxyAuthConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "proxyauth"
    verbose_name = "Proxy authentication"

    auth_config = None
    config_error = None

    def ready(self):
        from django.conf import settings
        from proxyauth.config.loader import load_config_file

        # Register signal receivers
        from . import signals

        # The app registry calls ready() once per process
        result = load_config_file(
            getattr(settings, "PROXYAUTH_CONFIG_FILE", None),
            overrides=getattr(settings, "PROXYAUTH", None),
        )
        self.auth_config = result.config
        self.config_error = result.error

        if result.error is not None:
            logger.warning(f"proxyauth started with fallback configuration: {result.error}")

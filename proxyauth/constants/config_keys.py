"""
Configuration key constants for proxyauth.
Centralizes the property names read from the configuration file so they are
not hardcoded throughout the codebase.
"""


class ConfigKeys:
    """Keys recognized in the proxyauth configuration source."""
    CREATE_USERS = "create.users"
    UPDATE_INFO = "update.info"
    UPDATE_ROLES = "update.roles"
    CONVERT_TO_UTF8 = "convert.to.utf8"
    DEFAULT_ROLES = "default.roles"
    FULLNAME_HEADER = "header.fullname"
    EMAIL_HEADER = "header.email"
    ROLE_ATTRIBUTE_NAMES = "header.dynamicroles.attributenames"

    # Compared against lowercased, trimmed keys
    ROLE_MAPPING_PREFIX = "header.dynamicroles.attributevalue."

    @classmethod
    def get_flag_keys(cls):
        """Get list of boolean flag keys."""
        return [
            cls.CREATE_USERS,
            cls.UPDATE_INFO,
            cls.UPDATE_ROLES,
            cls.CONVERT_TO_UTF8,
        ]

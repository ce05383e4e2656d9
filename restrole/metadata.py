"""
RestRole - Auth Metadata

Names shared by the schema, the bootstrap sequence and the consistency policy.
"""

# Keyspace that holds all auth tables
AUTH_KEYSPACE = "system_auth"

# Canonical default superuser created by bootstrap
DEFAULT_SUPERUSER_NAME = "cassandra"

# Table names
ROLES_TABLE = "roles"
ROLE_ATTRIBUTES_TABLE = "role_attributes"
BOOTSTRAP_CLAIMS_TABLE = "bootstrap_claims"

# Primary key column of the roles table
ROLE_COLUMN = "role"


def QualifiedTableName(table_name: str) -> str:
    """Return '<keyspace>.<table>' for log messages and resource names"""
    return f"{AUTH_KEYSPACE}.{table_name}"

# Supabase Auth
# Users live in Supabase's auth.users table; the API only validates their JWTs.
# Platform-wide roles are kept in a separate table so they can't be edited via user_metadata.

"""
Expected Supabase table structure:
- user_roles
  - id: uuid (primary key)
  - user_id: uuid (foreign key to auth.users.id, not null)
  - role: text (not null) - values: admin, moderator
  - UNIQUE(user_id, role)
"""

USER_ROLES_TABLE = "user_roles"
PLATFORM_ADMIN_ROLE = "admin"

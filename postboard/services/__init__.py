# Services package.
#
# Each module exposes a focused set of functions for one concern:
#
#   post_service        — CRUD + pagination + list cache for Post
#   post_authorization  — the owner-only modification rule
#   user_service        — signup and credential checks for User
#
# Service functions take an AsyncSession as their first argument and
# flush but never commit; the ``get_db`` dependency owns the transaction.

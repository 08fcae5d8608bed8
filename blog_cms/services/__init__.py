# Services package.
#
# Each module exposes a focused set of async functions that encapsulate
# business logic and database access for a single aggregate root:
#
#   category_service: CRUD + post counts for Category
#   post_service:     CRUD + filtered listing + category links for Post
#
# All service functions accept an AsyncSession as their first argument
# so that the router layer controls the transaction boundary via the
# ``get_db`` dependency.  Failures are raised as the typed errors in
# ``blog_cms.exceptions``.

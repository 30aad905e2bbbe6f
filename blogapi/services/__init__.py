# Services package.
#
# Each module exposes a focused set of async functions that encapsulate
# business logic and database access for one part of the domain:
#
#   user_service        signup/signin credentials and the caller's profile
#   post_service        visibility and ownership rules for Post, listing
#   engagement_service  like toggling and append-only comments
#
# All service functions accept an AsyncSession as their first argument so
# that the router layer controls the transaction boundary via the ``get_db``
# dependency.  Expected failures come back as ``errors.Failure`` values
# rather than exceptions; routers hand them to ``errors.respond``.

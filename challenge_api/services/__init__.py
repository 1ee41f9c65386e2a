# Services package.
#
# Each module exposes a service table: a dict of async functions built
# with ``servicekit.ServiceBuilder`` so every call is validated, logged
# (at debug level) and traced according to the function's metadata:
#
#   challenge_service: challenge listing backed by the upstream API
